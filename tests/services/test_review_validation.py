from app.schemas.question_review import GeneratedReview
from app.utils.review_validation import is_incomplete, validate_review_result

GOOD = GeneratedReview(
    hint1="Consider what happens to a ratio when both terms share a common factor.",
    hint2="Look for the largest number that divides both terms of the ratio exactly, then divide.",
    hint3="Both 4 and 8 are divisible by 4, so dividing each term by 4 gives the simplest form of the ratio.",
    solution="Step 1: Identify the ratio 4:8.\nStep 2: Divide both terms by 4.\nStep 3: The result 1:2 matches option B.",
    explanation=(
        "A ratio is unchanged when both of its terms are divided by the same non-zero number. "
        "Dividing 4:8 by the common factor 4 gives 1:2, which is option B. The other options divide only one term."
    ),
    tokens_used=1200,
)


class TestReviewValidation:

    def test_good_review_passes(self):
        result = validate_review_result(GOOD)
        assert result.is_valid is True
        assert result.issues == []
        assert result.warnings == []

    def test_missing_hints(self):
        result = validate_review_result(GOOD.model_copy(update={"hint2": "", "hint3": "  "}))
        assert result.is_valid is False
        assert "Hint 2 is missing or empty" in result.issues
        assert "Hint 3 is missing or empty" in result.issues

    def test_hints_must_grow(self):
        result = validate_review_result(GOOD.model_copy(update={"hint3": "Divide by 4."}))
        assert "Hint 3 should be more detailed than Hint 2" in result.issues

    def test_placeholders_are_flagged(self):
        result = validate_review_result(GOOD.model_copy(update={
            "hint1": "[Insert a broad hint about ratios and their common factors here please]",
        }))
        assert "Hint 1 may contain placeholder text" in result.issues

    def test_short_solution_and_explanation(self):
        result = validate_review_result(GOOD.model_copy(update={"solution": "It is B.", "explanation": "Ratios."}))
        assert any(issue.startswith("Solution is too short") for issue in result.issues)
        assert any(issue.startswith("Explanation is too short") for issue in result.issues)

    def test_long_solution_needs_steps(self):
        prose = "Divide both sides of the ratio by their common factor and compare with the options " * 4
        result = validate_review_result(GOOD.model_copy(update={"solution": prose}))
        assert "Solution should be formatted with clear steps" in result.issues

    def test_warnings_do_not_fail(self):
        result = validate_review_result(GOOD.model_copy(update={
            "explanation": GOOD.explanation + " and so on...",
            "tokens_used": 20000,
        }))
        assert result.is_valid is True
        assert "Explanation looks cut off" in result.warnings
        assert "High token usage - review may be expensive" in result.warnings

    def test_is_incomplete(self):
        assert is_incomplete("to be continued")
        assert is_incomplete("The answer is...")
        assert not is_incomplete("The answer is B.")
