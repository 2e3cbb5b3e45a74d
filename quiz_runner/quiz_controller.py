"""
Quiz session controller for the quiz runner.
Drives a session through the question snapshot, records answers, scores the
result, and arms the countdown timer.
"""
import logging
import time
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from . import evaluator
from .config_manager import ConfigManager
from .models import Answer, Question, QuestionDraft, QuestionResult, QuizSession
from .question_bank import QuestionBank, QuestionNotFoundError, ValidationError
from .quiz_timer import QuizTimer, format_remaining


class SessionState(Enum):
    """Enumeration of possible quiz session states."""
    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class QuizEvent(Enum):
    """Change notifications emitted after each state mutation."""
    STARTED = "started"
    ANSWER_CHANGED = "answer_changed"
    NAVIGATED = "navigated"
    COMPLETED = "completed"
    TIMER_TICK = "timer_tick"
    TIMER_EXPIRED = "timer_expired"
    BANK_CHANGED = "bank_changed"
    SETTINGS_CHANGED = "settings_changed"


Listener = Callable[[QuizEvent, Dict[str, Any]], Any]


class QuizControllerError(Exception):
    """Base exception for quiz controller errors."""
    pass


class QuizController:
    """
    Orchestrates quiz sessions over a question bank.

    The controller owns the current session and the countdown timer. Every
    intent runs to completion synchronously and then notifies subscribers.
    Navigation never raises: out-of-range moves are clamped or ignored, and
    answers are frozen once the session is completed.
    """

    def __init__(
        self,
        question_bank: QuestionBank,
        config_manager: ConfigManager,
        timer: Optional[QuizTimer] = None
    ):
        """
        Initialize the quiz controller.

        Args:
            question_bank: Editable question collection sessions are built from
            config_manager: Instance for managing configuration
            timer: Countdown timer, a new one is created if not given
        """
        self.logger = logging.getLogger(__name__)
        self.question_bank = question_bank
        self.config_manager = config_manager
        self.timer = timer or QuizTimer()

        self._session: Optional[QuizSession] = None
        # Highest score seen per bank size, kept for the process lifetime
        self._highest_scores: Dict[int, int] = {}
        self._listeners: List[Listener] = []

        self.logger.info("QuizController initialized")

    # Notifications

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """
        Register a listener for change notifications.

        Args:
            listener: Called with (event, payload) after each mutation

        Returns:
            Function that removes the listener again

        Raises:
            QuizControllerError: If the listener is not callable
        """
        if not callable(listener):
            raise QuizControllerError(f"Listener must be callable, got {type(listener).__name__}")
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _emit(self, event: QuizEvent, **payload: Any) -> None:
        for listener in list(self._listeners):
            try:
                listener(event, payload)
            except Exception as e:
                self.logger.error(
                    f"Listener failed handling {event.value}: {e}",
                    exc_info=True,
                    extra={
                        'event_type': 'listener_error',
                        'quiz_event': event.value,
                        'timestamp': time.time()
                    }
                )

    # Session lifecycle

    def start(self) -> QuizSession:
        """
        Start a new session from a snapshot of the question bank.

        Any countdown from a previous session is stopped first. The timer is
        armed only if it is enabled in the configuration at this moment. An
        empty bank produces a session that is completed immediately.

        Returns:
            The new session
        """
        self.timer.reset()

        session = QuizSession(questions=self.question_bank.snapshot())
        self._session = session

        self.logger.info(
            f"Started quiz session with {session.total_questions} questions",
            extra={
                'event_type': 'session_started',
                'total_questions': session.total_questions,
                'timestamp': time.time()
            }
        )

        if not session.questions:
            self.logger.warning("Question bank is empty, completing session immediately")
            self._emit(QuizEvent.STARTED, total_questions=0)
            self.finish()
            return session

        settings = self.config_manager.get_quiz_settings()
        if settings.timer_enabled:
            self.timer.arm(
                settings.timer_duration,
                on_tick=lambda remaining: self._handle_timer_tick(session, remaining),
                on_expire=lambda: self._handle_timer_expired(session)
            )
        self._emit(QuizEvent.STARTED, total_questions=session.total_questions)
        return session

    def restart(self) -> QuizSession:
        """Throw away the current session and start a fresh one."""
        self.logger.info("Restarting quiz session")
        return self.start()

    def finish(self) -> int:
        """
        Complete the current session and record its score.

        Safe to call repeatedly: later calls recompute the same score and
        change nothing else.

        Returns:
            Score of the session, 0 if no session was started
        """
        session = self._session
        if session is None:
            self.logger.warning("Cannot finish: no session started")
            return 0

        result = evaluator.score(session.questions, session.answers)
        size = session.total_questions
        self._highest_scores[size] = max(self._highest_scores.get(size, 0), result)

        if session.completed:
            return result

        session.completed = True
        session.end_time = datetime.now()
        timer_stopped = self.timer.disarm("session finished")

        self.logger.info(
            f"Quiz completed with score {result}/{size}, timer stopped: {timer_stopped}",
            extra={
                'event_type': 'session_completed',
                'score': result,
                'total_questions': size,
                'highest_score': self._highest_scores[size],
                'timer_stopped': timer_stopped,
                'timestamp': time.time()
            }
        )
        self._emit(
            QuizEvent.COMPLETED,
            score=result,
            total_questions=size,
            highest_score=self._highest_scores[size]
        )
        return result

    def _handle_timer_tick(self, session: QuizSession, remaining: int) -> None:
        if session is not self._session:
            return
        self._emit(QuizEvent.TIMER_TICK, remaining_seconds=remaining, remaining_time=format_remaining(remaining))

    def _handle_timer_expired(self, session: QuizSession) -> None:
        if session is not self._session or session.completed:
            self.logger.debug("Ignoring expiry of a countdown from an earlier session")
            return
        self.logger.info(
            "Time is up, completing session",
            extra={
                'event_type': 'session_timer_expired',
                'timestamp': time.time()
            }
        )
        self._emit(QuizEvent.TIMER_EXPIRED)
        self.finish()

    # Answers and navigation

    def select_choice(self, question_id: int, choice_key: str) -> bool:
        """
        Record a choice for a question in the current session.

        Multi-select questions toggle the key in and out of the answer set;
        other types replace the stored answer. A multi-select answer that
        becomes empty counts as unanswered again.

        Args:
            question_id: Id of a question in the session snapshot
            choice_key: Key of one of the question's choices

        Returns:
            True if the answer changed, False if the call was ignored
        """
        session = self._session
        if session is None or session.completed:
            self.logger.debug(f"Ignoring selection for question {question_id}: no session in progress")
            return False

        question = self._find_question(question_id)
        if question is None:
            self.logger.warning(f"Ignoring selection for unknown question {question_id}")
            return False

        if choice_key not in question.choices:
            self.logger.warning(f"Ignoring unknown choice {choice_key!r} for question {question_id}")
            return False

        if question.is_multi_select:
            current = session.answers.get(question_id)
            selected = current if isinstance(current, frozenset) else frozenset()
            if choice_key in selected:
                selected = selected - {choice_key}
            else:
                selected = selected | {choice_key}

            if selected:
                session.answers[question_id] = selected
            else:
                del session.answers[question_id]
        else:
            session.answers[question_id] = choice_key

        self.logger.debug(f"Answer for question {question_id} set to {session.answers.get(question_id)!r}")
        self._emit(QuizEvent.ANSWER_CHANGED, question_id=question_id, answer=session.answers.get(question_id))
        return True

    def select_current_choice(self, choice_key: str) -> bool:
        """Record a choice for the question currently shown."""
        question = self.current_question
        if question is None:
            return False
        return self.select_choice(question.id, choice_key)

    def next(self) -> bool:
        """
        Advance to the next question, finishing the session past the last one.

        Returns:
            True if the index moved, False otherwise
        """
        session = self._session
        if session is None:
            return False

        if session.current_index < session.total_questions - 1:
            session.current_index += 1
            self.logger.debug(f"Advanced to question {session.current_index + 1}")
            self._emit(QuizEvent.NAVIGATED, current_index=session.current_index)
            return True

        self.finish()
        return False

    def previous(self) -> bool:
        """
        Go back one question.

        Returns:
            True if the index moved, False if already on the first question
        """
        session = self._session
        if session is None or session.current_index <= 0:
            return False

        session.current_index -= 1
        self.logger.debug(f"Moved back to question {session.current_index + 1}")
        self._emit(QuizEvent.NAVIGATED, current_index=session.current_index)
        return True

    # Read accessors

    @property
    def session(self) -> Optional[QuizSession]:
        return self._session

    @property
    def state(self) -> SessionState:
        if self._session is None:
            return SessionState.NOT_STARTED
        if self._session.completed:
            return SessionState.COMPLETED
        return SessionState.IN_PROGRESS

    @property
    def is_completed(self) -> bool:
        return self._session is not None and self._session.completed

    @property
    def current_question(self) -> Optional[Question]:
        session = self._session
        if session is None or not session.questions:
            return None
        return session.questions[session.current_index]

    @property
    def current_answer(self) -> Optional[Answer]:
        question = self.current_question
        if question is None:
            return None
        return self._session.answers.get(question.id)

    def is_choice_selected(self, choice_key: str) -> bool:
        """Check whether a choice of the current question is selected."""
        answer = self.current_answer
        if answer is None:
            return False
        if isinstance(answer, frozenset):
            return choice_key in answer
        return answer == choice_key

    @property
    def answered_count(self) -> int:
        return self._session.answered_count if self._session else 0

    @property
    def remaining_seconds(self) -> int:
        return self.timer.remaining_time

    @property
    def remaining_time(self) -> str:
        """Remaining countdown as MM:SS."""
        return format_remaining(self.timer.remaining_time)

    @property
    def score(self) -> int:
        if self._session is None:
            return 0
        return evaluator.score(self._session.questions, self._session.answers)

    @property
    def percentage(self) -> int:
        if self._session is None:
            return 0
        return evaluator.percentage(self.score, self._session.total_questions)

    @property
    def highest_score(self) -> int:
        """Highest score recorded for the size of the current session or bank."""
        if self._session is not None:
            size = self._session.total_questions
        else:
            size = len(self.question_bank)
        return self._highest_scores.get(size, 0)

    def breakdown(self) -> List[QuestionResult]:
        """
        Report each question's outcome in snapshot order.

        Correctness is only revealed once the session is completed; while in
        progress the flags are None.
        """
        session = self._session
        if session is None:
            return []

        results = []
        for ordinal, question in enumerate(session.questions, start=1):
            correct = evaluator.is_correct(question, session.answers.get(question.id)) if session.completed else None
            results.append(QuestionResult(ordinal=ordinal, question_id=question.id, is_correct=correct))
        return results

    def get_progress(self) -> Optional[Dict[str, Any]]:
        """
        Get progress information for the current session.

        Returns:
            Dictionary with progress info, None if no session was started
        """
        session = self._session
        if session is None:
            return None

        return {
            'state': self.state.value,
            'current_question': session.current_index + 1 if session.questions else 0,
            'total_questions': session.total_questions,
            'answered': session.answered_count,
            'is_last_question': session.current_index >= session.total_questions - 1,
            'completed': session.completed,
            'timer_running': self.timer.is_armed,
            'remaining_time': self.remaining_time,
            'start_time': session.start_time,
        }

    def get_results_summary(self) -> Optional[Dict[str, Any]]:
        """
        Get the results of a completed session.

        Returns:
            Dictionary with score, percentage, band message, highest score and
            breakdown, or None if the session is not completed
        """
        session = self._session
        if session is None or not session.completed:
            return None

        summary = evaluator.evaluate(session.questions, session.answers)
        summary['highest_score'] = self.highest_score
        summary['breakdown'] = self.breakdown()
        summary['duration'] = (session.end_time - session.start_time).total_seconds()
        return summary

    def list_questions(self) -> List[Question]:
        """Full bank listing for the editor."""
        return self.question_bank.list_questions()

    def _find_question(self, question_id: int) -> Optional[Question]:
        for question in self._session.questions:
            if question.id == question_id:
                return question
        return None

    # Settings intents

    def set_timer_enabled(self, enabled: bool) -> Dict[str, Any]:
        """
        Enable or disable the countdown for the next session.

        A countdown already running for the current session keeps running.
        """
        result = self.config_manager.set_timer_enabled(enabled)
        if result['success']:
            self._emit(QuizEvent.SETTINGS_CHANGED, timer_enabled=enabled)
        return result

    def set_timer_duration(self, minutes: int) -> Dict[str, Any]:
        """
        Set the countdown length in minutes.

        Rejected while a countdown is running so the in-flight session keeps
        the duration it started with.
        """
        if self.timer.is_armed:
            error_msg = "Cannot change timer duration while a countdown is running"
            self.logger.warning(error_msg)
            return {
                'success': False,
                'error': error_msg,
                'user_message': "❌ Finish the current quiz before changing the timer"
            }

        result = self.config_manager.set_timer_duration_minutes(minutes)
        if result['success']:
            self._emit(QuizEvent.SETTINGS_CHANGED, timer_duration=self.config_manager.get_timer_duration())
        return result

    # Question bank intents

    def create_question(self, draft: QuestionDraft) -> Dict[str, Any]:
        """
        Add a question to the bank.

        The running session keeps scoring against its own snapshot.

        Returns:
            Dictionary with success status, the new question, or the error
        """
        try:
            question = self.question_bank.create(draft)
        except ValidationError as e:
            return self._bank_error_result(e, "create")

        self._emit(QuizEvent.BANK_CHANGED, action="created", question_id=question.id)
        return {
            'success': True,
            'question': question,
            'message': f"Question {question.id} created",
            'user_message': "✅ Question added"
        }

    def update_question(self, question_id: int, draft: QuestionDraft) -> Dict[str, Any]:
        """
        Replace a question in the bank, keeping its id and position.

        Returns:
            Dictionary with success status, the updated question, or the error
        """
        try:
            question = self.question_bank.update(question_id, draft)
        except (QuestionNotFoundError, ValidationError) as e:
            return self._bank_error_result(e, "update")

        self._emit(QuizEvent.BANK_CHANGED, action="updated", question_id=question_id)
        return {
            'success': True,
            'question': question,
            'message': f"Question {question_id} updated",
            'user_message': "✅ Question saved"
        }

    def delete_question(self, question_id: int) -> Dict[str, Any]:
        """
        Remove a question from the bank.

        Returns:
            Dictionary with success status, the removed question, or the error
        """
        try:
            question = self.question_bank.delete(question_id)
        except QuestionNotFoundError as e:
            return self._bank_error_result(e, "delete")

        self._emit(QuizEvent.BANK_CHANGED, action="deleted", question_id=question_id)
        return {
            'success': True,
            'question': question,
            'message': f"Question {question_id} deleted",
            'user_message': "✅ Question deleted"
        }

    def _bank_error_result(self, error: Exception, operation: str) -> Dict[str, Any]:
        self.logger.warning(
            f"Question {operation} rejected: {error}",
            extra={
                'event_type': 'bank_edit_rejected',
                'operation': operation,
                'error_type': type(error).__name__,
                'timestamp': time.time()
            }
        )
        result = {
            'success': False,
            'error': str(error),
            'user_message': f"❌ {error}"
        }
        if isinstance(error, ValidationError):
            result['reason'] = error.reason
        return result
