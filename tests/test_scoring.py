"""
Unit tests for per-kind answer scoring and redaction
"""
import pytest

from app.core.agents.quiz.redaction import redact_questions
from app.core.agents.quiz.scoring import score_attempt, score_one
from app.schemas.question import (
    ClozeQuestion,
    MatchQuestion,
    McqQuestion,
    MsqQuestion,
    OrderQuestion,
    ShortQuestion,
    TrueFalseQuestion,
    dump_questions,
)

MCQ = McqQuestion(text="Which letter is third?", options=["A", "B", "C", "D"], correct_indices=[2])
MSQ = MsqQuestion(text="Select the transport protocols.", options=["HTTP", "TCP", "UDP"], correct_indices=[2, 1])
TF = TrueFalseQuestion(text="TCP guarantees ordering.", correct_bool=True)
CLOZE = ClozeQuestion(text="{{gap1}} runs over {{gap2}}.", cloze_answers=["HTTP", "TCP"])
SHORT = ShortQuestion(text="Name the transport protocol.", acceptable_answers=["TCP", "Transmission Control Protocol"])
MATCH = MatchQuestion(text="Match the pairs below.", match_left=["Protocol", "Database"], match_right=["HTTP", "MongoDB"])
ORDER = OrderQuestion(text="Put the steps in order.", order_items=["Definition", "Example", "Advantages"])


class TestScoreOne:
    @pytest.mark.parametrize("question,answer,expected", [
        (MCQ, 2, 1),
        (MCQ, 1, 0),
        (MCQ, "C", 0),
        (MCQ, "2", 0),
        (MCQ, None, 0),
        (MCQ, 2.0, 1),
        (MCQ, 2.5, 0),
        (MSQ, [1, 2], 1),
        (MSQ, [2, 1], 1),
        (MSQ, [1], 0),
        (MSQ, 1, 0),
        (MSQ, [True, 2], 0),
        (MSQ, [1.0, 2], 1),
        (TF, True, 1),
        (TF, False, 0),
        (TF, 1, 0),
        (TF, "true", 0),
        (CLOZE, ["http", "  TCP "], 1),
        (CLOZE, ["HTTP"], 0),
        (CLOZE, ["HTTP", "UDP"], 0),
        (CLOZE, "HTTP TCP", 0),
        (CLOZE, ["HTTP", 5], 0),
        (SHORT, "  tcp ", 1),
        (SHORT, "transmission control PROTOCOL", 1),
        (SHORT, "udp", 0),
        (SHORT, ["TCP"], 0),
        (MATCH, [0, 1], 1),
        (MATCH, [1, 0], 0),
        (MATCH, [0], 0),
        (ORDER, [0, 1, 2], 1),
        (ORDER, [0, 2, 1], 0),
        (ORDER, [0, 1], 0),
        (ORDER, [0.0, 1.0, 2.0], 1),
        (ORDER, {"0": 0}, 0),
    ])
    def test_score(self, question, answer, expected):
        assert score_one(question, answer) == expected

    def test_bool_is_not_an_index(self):
        """Test that True is not scored as option index 1"""
        q = McqQuestion(text="Which one is second?", options=["A", "B"], correct_indices=[1])
        assert score_one(q, True) == 0
        assert score_one(q, 1) == 1


class TestScoreAttempt:
    def test_total_with_missing_slots(self):
        questions = [MCQ, TF, ORDER]
        assert score_attempt(questions, [2, True, [0, 1, 2]]) == 3
        assert score_attempt(questions, [2]) == 1
        assert score_attempt(questions, []) == 0


class TestRedaction:
    def test_answer_keys_removed(self):
        """Test that no kind leaks its answer key"""
        redacted = redact_questions(dump_questions([MCQ, MSQ, TF, CLOZE, SHORT, MATCH, ORDER]))

        for q in redacted:
            assert not {"correctIndices", "correctBool", "clozeAnswers", "acceptableAnswers"} & set(q)
        assert redacted[0]["options"] == ["A", "B", "C", "D"]
        assert redacted[1]["options"] == ["HTTP", "TCP", "UDP"]
        assert set(redacted[2]) == {"kind", "text"}
        assert redacted[3]["text"] == "{{gap1}} runs over {{gap2}}."
        assert redacted[5]["matchRight"] == ["HTTP", "MongoDB"]
        assert redacted[6]["orderItems"] == ["Definition", "Example", "Advantages"]

    def test_keeps_source_and_rationale(self):
        q = TrueFalseQuestion(
            text="TCP guarantees ordering.",
            correct_bool=True,
            rationale="Sequence numbers",
            source={"chunkId": "5"},
        )
        redacted = redact_questions(dump_questions([q]))[0]
        assert redacted == {
            "kind": "tf",
            "text": "TCP guarantees ordering.",
            "rationale": "Sequence numbers",
            "source": {"chunkId": "5"},
        }
