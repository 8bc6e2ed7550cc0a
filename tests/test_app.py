import pytest
from datetime import timedelta
from unittest.mock import patch

from notemap.app import (
    SessionExitRequested, build_mind_map_tree, cmd_review, cmd_settings, format_interval,
    run_review_session, session_int_prompt, session_prompt,
)
from notemap.db import init_db
from notemap.models import MindMapNode
from notemap.reminders import get_reminder_settings
from notemap.settings import get_review_batch_size, set_setting
from notemap.subjects import create_subject, get_review_history, get_subject


def test_session_exit_requested_is_exception():
    with pytest.raises(SessionExitRequested):
        raise SessionExitRequested()


def test_session_prompt_raises_on_q():
    with patch("notemap.app.Prompt.ask", return_value="q"):
        with pytest.raises(SessionExitRequested):
            session_prompt("test prompt")


def test_session_prompt_raises_on_menu():
    with patch("notemap.app.Prompt.ask", return_value="menu"):
        with pytest.raises(SessionExitRequested):
            session_prompt("test prompt")


def test_session_prompt_returns_normal_input():
    with patch("notemap.app.Prompt.ask", return_value="hello"):
        result = session_prompt("test prompt")
        assert result == "hello"


def test_session_int_prompt_raises_on_q():
    with patch("notemap.app.Prompt.ask", return_value="q"):
        with pytest.raises(SessionExitRequested):
            session_int_prompt("rate", choices=["3", "4", "5"])


def test_session_int_prompt_returns_normal_input():
    with patch("notemap.app.Prompt.ask", return_value="5"):
        result = session_int_prompt("rate", choices=["3", "4", "5"])
        assert result == 5


def test_format_interval():
    assert format_interval(1) == "1 day"
    assert format_interval(6) == "6 days"


def test_build_mind_map_tree():
    node = MindMapNode.from_dict({"text": "Root", "children": [{"text": "A"}, {"text": "B"}]})
    tree = build_mind_map_tree(node)
    assert len(tree.children) == 2


def _make_subjects(tmp_db, fixed_now, count):
    return [create_subject(tmp_db, f"Subject {i}", f"notes {i}", now=fixed_now) for i in range(count)]


def test_run_review_session_empty(tmp_db):
    init_db(tmp_db)
    assert run_review_session(tmp_db, []) == 0


def test_run_review_session_records_ratings(tmp_db, fixed_now):
    init_db(tmp_db)
    subjects = _make_subjects(tmp_db, fixed_now, 2)
    # Reveal + rate for each subject
    with patch("notemap.app.Prompt.ask", side_effect=["", "5", "", "3"]):
        reviewed = run_review_session(tmp_db, subjects)
    assert reviewed == 2
    assert get_review_history(tmp_db, subjects[0].id)[0].quality == 5
    assert get_review_history(tmp_db, subjects[1].id)[0].quality == 3
    assert get_subject(tmp_db, subjects[0].id).ease_factor == 2.6


def test_run_review_session_exits_on_q(tmp_db, fixed_now):
    """User rates the first subject then types 'q' on the second reveal."""
    init_db(tmp_db)
    subjects = _make_subjects(tmp_db, fixed_now, 2)
    with patch("notemap.app.Prompt.ask", side_effect=["", "4", "q"]):
        with pytest.raises(SessionExitRequested):
            run_review_session(tmp_db, subjects)
    assert len(get_review_history(tmp_db, subjects[0].id)) == 1
    assert get_review_history(tmp_db, subjects[1].id) == []


def test_run_review_session_skips_stale_subject(tmp_db, fixed_now):
    init_db(tmp_db)
    subjects = _make_subjects(tmp_db, fixed_now, 1)
    stale = subjects[0]
    # Someone else reviews it first
    with patch("notemap.app.Prompt.ask", side_effect=["", "4"]):
        run_review_session(tmp_db, [stale])
    with patch("notemap.app.Prompt.ask", side_effect=["", "5"]):
        reviewed = run_review_session(tmp_db, [stale])
    assert reviewed == 0
    assert len(get_review_history(tmp_db, stale.id)) == 1


def test_cmd_review_respects_batch_size(tmp_db, fixed_now):
    init_db(tmp_db)
    set_setting(tmp_db, "review_batch_size", "1")
    subjects = _make_subjects(tmp_db, fixed_now - timedelta(days=2), 3)
    with patch("notemap.app.Prompt.ask", side_effect=["", "4"]):
        cmd_review(tmp_db)
    reviewed = [s for s in subjects if get_review_history(tmp_db, s.id)]
    assert len(reviewed) == 1


def test_cmd_review_stops_on_q(tmp_db, fixed_now):
    init_db(tmp_db)
    subjects = _make_subjects(tmp_db, fixed_now - timedelta(days=2), 2)
    with patch("notemap.app.Prompt.ask", side_effect=["q"]):
        cmd_review(tmp_db)  # should not raise
    assert all(get_review_history(tmp_db, s.id) == [] for s in subjects)


def test_cmd_settings_saves_all(tmp_db):
    init_db(tmp_db)
    with patch("notemap.app.Prompt.ask", side_effect=["y", "7:30", "4"]):
        cmd_settings(tmp_db)
    assert get_reminder_settings(tmp_db) == {"time": "07:30", "enabled": True}
    assert get_review_batch_size(tmp_db) == 4


def test_cmd_settings_bad_batch_saves_nothing(tmp_db):
    init_db(tmp_db)
    with patch("notemap.app.Prompt.ask", side_effect=["y", "10:00", "0"]):
        cmd_settings(tmp_db)
    assert get_reminder_settings(tmp_db) == {"time": "09:00", "enabled": False}
    assert get_review_batch_size(tmp_db) == 10


def test_cmd_settings_bad_time_saves_nothing(tmp_db):
    init_db(tmp_db)
    with patch("notemap.app.Prompt.ask", side_effect=["y", "25:00", "5"]):
        cmd_settings(tmp_db)
    assert get_reminder_settings(tmp_db) == {"time": "09:00", "enabled": False}
    assert get_review_batch_size(tmp_db) == 10
