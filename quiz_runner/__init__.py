"""Quiz session engine with an editable question bank and countdown timer."""
