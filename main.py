#!/usr/bin/env python3
"""
Quiz Runner - Console Entry Point

Runs a quiz in the terminal against the question bank. Settings are read
from config.json when present.

Usage:
    python main.py [config.json]

Configuration:
    quiz.timer_enabled           Run sessions against the clock
    quiz.timer_duration_minutes  Countdown length in minutes
    quiz.question_file           JSON file with {"questions": [...]}
    logging.level                Log level (default WARNING)
    logging.log_directory        Directory for quiz.log (default ./logs/)
"""

import asyncio
import json
import logging
import sys
from pathlib import Path

from quiz_runner.config_manager import ConfigManager
from quiz_runner.evaluator import performance_band
from quiz_runner.models import QuestionDraft
from quiz_runner.question_bank import QuestionBank, QuestionBankError
from quiz_runner.quiz_controller import QuizController, QuizEvent

HELP_TEXT = """Commands:
  start | restart        begin a new quiz
  <choice key>           select (or toggle) a choice, e.g. A
  n | p                  next / previous question
  f                      finish the quiz
  list                   show the question bank
  add                    add a question
  del <id>               delete a question
  timer                  toggle the timer for the next quiz
  minutes <n>            set the timer length
  help | quit"""


def load_config(config_path="config.json"):
    """Load configuration from a JSON file, falling back to defaults."""
    path = Path(config_path)

    if not path.exists():
        return {}

    try:
        with open(path, 'r', encoding='utf-8') as f:
            return json.load(f)
    except json.JSONDecodeError as e:
        print(f"❌ Error: Invalid JSON in {path}: {e}")
        sys.exit(1)
    except OSError as e:
        print(f"❌ Error loading {path}: {e}")
        sys.exit(1)


def setup_logging_from_config(config):
    """Set up logging based on configuration."""
    log_config = config.get('logging', {})
    log_level = getattr(logging, log_config.get('level', 'WARNING').upper(), logging.WARNING)
    log_directory = Path(log_config.get('log_directory', './logs/'))

    # Create logs directory
    log_directory.mkdir(parents=True, exist_ok=True)

    logging.basicConfig(
        level=log_level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.FileHandler(log_directory / "quiz.log", encoding='utf-8')
        ]
    )
    return logging.getLogger(__name__)


def load_question_bank(config_manager):
    """Build the question bank from the configured file or the sample set."""
    question_file = config_manager.get_question_file()
    if not question_file:
        return QuestionBank.with_sample_questions()

    bank = QuestionBank()
    try:
        bank.load_file(question_file)
    except QuestionBankError as e:
        print(f"⚠️ {e}, using sample questions")
        return QuestionBank.with_sample_questions()

    for error in bank.load_errors:
        print(f"⚠️ Skipped {error}")
    return bank


class ConsoleQuiz:
    """Minimal terminal front end driving a QuizController."""

    def __init__(self, controller):
        self.controller = controller
        self.controller.subscribe(self.on_event)

    def on_event(self, event, payload):
        if event is QuizEvent.TIMER_EXPIRED:
            print("\n⏰ Time's up!")
        elif event is QuizEvent.COMPLETED:
            self.show_results()
        elif event is QuizEvent.TIMER_TICK and payload['remaining_seconds'] % 60 == 0:
            print(f"\n⏱️ {payload['remaining_time']} remaining")

    def show_question(self):
        question = self.controller.current_question
        progress = self.controller.get_progress()
        if question is None or progress is None:
            return
        header = f"Question {progress['current_question']} of {progress['total_questions']}"
        header += f"  |  Answered: {progress['answered']}/{progress['total_questions']}"
        if progress['timer_running']:
            header += f"  |  {progress['remaining_time']}"
        print(f"\n{header}\n{question.prompt}\n({question.type_label})")
        for key, text in question.choices.items():
            marker = "[x]" if self.controller.is_choice_selected(key) else "[ ]"
            if self.controller.is_completed and key in question.ordered_answer_keys():
                marker += " ✓"
            print(f"  {marker} {key}. {text}")

    def show_results(self):
        summary = self.controller.get_results_summary()
        if summary is None:
            return
        print(f"\nYour Score: {summary['score']}/{summary['total']} ({summary['percentage']}%)")
        print(f"Highest Score: {summary['highest_score']}/{summary['total']}")
        for result in summary['breakdown']:
            status = "✓ Correct" if result.is_correct else "✗ Incorrect"
            print(f"  Q{result.ordinal}: {status}")
        print(performance_band(summary['percentage']).message)

    def list_questions(self):
        for question in self.controller.list_questions():
            answer = ", ".join(question.ordered_answer_keys())
            print(f"  #{question.id} [{question.type.value}] {question.prompt} (answer: {answer})")

    async def add_question(self, ask):
        question_type = (await ask("Type (single-choice/true-false/multi-select): ")).strip()
        prompt = await ask("Question: ")
        choices = {}
        for key in "ABCDEF":
            text = await ask(f"Choice {key} (blank to stop): ")
            if not text.strip():
                break
            choices[key] = text
        answer = (await ask("Answer key(s), comma separated: ")).strip()
        keys = [key.strip() for key in answer.split(",") if key.strip()]
        draft = QuestionDraft(
            type=question_type,
            prompt=prompt,
            choices=choices,
            answer=keys if len(keys) != 1 or question_type == "multi-select" else keys[0]
        )
        result = self.controller.create_question(draft)
        print(result['user_message'])

    def handle_command(self, command):
        """Handle one non-interactive command. Returns False to quit."""
        controller = self.controller
        name, _, argument = command.partition(" ")

        if name in ("quit", "exit"):
            return False
        if name == "help":
            print(HELP_TEXT)
        elif name in ("start", "restart"):
            controller.restart()
            self.show_question()
        elif name == "n":
            if controller.next():
                self.show_question()
        elif name == "p":
            if controller.previous():
                self.show_question()
        elif name == "f":
            controller.finish()
        elif name == "list":
            self.list_questions()
        elif name == "del" and argument.strip().isdigit():
            print(controller.delete_question(int(argument))['user_message'])
        elif name == "timer":
            enabled = not controller.config_manager.get_timer_enabled()
            print(controller.set_timer_enabled(enabled)['user_message'])
        elif name == "minutes" and argument.strip().isdigit():
            print(controller.set_timer_duration(int(argument))['user_message'])
        elif controller.current_question is not None and controller.select_current_choice(command.upper()):
            self.show_question()
        else:
            print("Unknown command, type 'help'")
        return True

    async def run(self):
        loop = asyncio.get_running_loop()

        async def ask(prompt):
            return await loop.run_in_executor(None, input, prompt)

        print("📝 Quiz Runner - type 'help' for commands")
        while True:
            try:
                command = (await ask("> ")).strip()
            except EOFError:
                break
            if command == "add":
                await self.add_question(ask)
                continue
            if not self.handle_command(command):
                break
        self.controller.timer.reset()


async def run_quiz_with_config(config_path="config.json"):
    """Run the console quiz with configuration."""
    config = load_config(config_path)
    logger = setup_logging_from_config(config)

    config_manager = ConfigManager()
    for error in config_manager.apply_config(config):
        print(f"⚠️ Ignoring invalid setting: {error}")

    bank = load_question_bank(config_manager)
    logger.info(f"Question bank ready with {len(bank)} questions")

    controller = QuizController(bank, config_manager)
    await ConsoleQuiz(controller).run()


def cli():
    """Console script entry point."""
    try:
        asyncio.run(run_quiz_with_config(*sys.argv[1:2]))
    except KeyboardInterrupt:
        print("\n👋 Quiz stopped by user")


if __name__ == "__main__":
    cli()
