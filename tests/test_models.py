from __future__ import annotations

import pytest

from fixtures import make_friend
from whocast.models import Post, Question


def _post(author_id: int = 1) -> Post:
    return Post(id="0xabc", text="a cast long enough to ask about", author_id=author_id)


def test_question_accepts_valid_options(friends):
    question = Question(post=_post(), correct_friend=friends[0], options=tuple(friends))

    assert question.is_correct(1)
    assert not question.is_correct(2)
    assert question.option_for(3) == friends[2]
    assert question.option_for(99) is None


def test_question_rejects_wrong_option_count(friends):
    with pytest.raises(ValueError, match="exactly 5 options"):
        Question(post=_post(), correct_friend=friends[0], options=tuple(friends[:4]))


def test_question_rejects_duplicate_options(friends):
    options = (friends[0], friends[1], friends[1], friends[2], friends[3])
    with pytest.raises(ValueError, match="duplicate"):
        Question(post=_post(), correct_friend=friends[0], options=options)


def test_question_requires_correct_friend_in_options(friends):
    outsider = make_friend(42)
    options = (outsider, *friends[1:])
    with pytest.raises(ValueError, match="correct friend"):
        Question(post=_post(), correct_friend=friends[0], options=options)


def test_question_requires_author_match(friends):
    with pytest.raises(ValueError, match="author"):
        Question(post=_post(author_id=2), correct_friend=friends[0], options=tuple(friends))


def test_friend_handle():
    assert make_friend(7, "zed").handle == "@zed"
