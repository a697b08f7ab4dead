from musicdash.logging_utils import DashLogger, LogLevel, UserErrors


def test_dash_logger_quiet_filters_non_errors(capsys):
    logger = DashLogger(quiet=True, use_color=False)
    logger.info("hello")
    logger.error("boom")

    out = capsys.readouterr().out
    assert "hello" not in out
    assert "boom" in out


def test_dash_logger_verbose_includes_debug(capsys):
    logger = DashLogger(verbose=True, use_color=False)
    logger.debug("dbg")

    out = capsys.readouterr().out
    assert "dbg" in out
    assert "[DEBUG]" in out


def test_dash_logger_hides_debug_by_default(capsys):
    logger = DashLogger(use_color=False)
    logger.debug("dbg")

    assert capsys.readouterr().out == ""
    assert logger.get_entries() == []


def test_dash_logger_callback_receives_entries():
    seen = []
    logger = DashLogger(use_color=False, on_log=seen.append)

    logger.success("done", section="news")
    entries = logger.get_entries()

    assert len(entries) == 1
    assert entries[0].level == LogLevel.SUCCESS
    assert entries[0].section == "news"
    assert seen == entries

    logger.clear()
    assert logger.get_entries() == []


def test_format_summary_counts():
    logger = DashLogger(use_color=False)
    assert logger.format_summary() == "No activity"

    logger.success("a")
    logger.warning("b")
    logger.error("c")

    summary = logger.format_summary()
    assert "completed" in summary
    assert "warnings" in summary
    assert "errors" in summary


def test_user_errors_carry_context():
    assert "config/missing.yml" in UserErrors.config_not_found("config/missing.yml")
    assert "timed out" in UserErrors.network_error("timed out")
    assert "SPOTIFY_CLIENT_ID" in UserErrors.music_auth_failed("bad token")
