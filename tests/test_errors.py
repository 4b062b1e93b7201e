"""
Error hierarchy test suite.
"""

from config_control.errors import (
    ConfigError,
    ConfigLoadError,
    DiffError,
    ErrorCode,
    NoConfigSourceError,
    WatchSetupError,
)


def test_to_dict_includes_context():
    error = ConfigLoadError("/etc/app.json", "permission denied")

    assert error.to_dict() == {
        "code": ErrorCode.CONFIG_LOAD_FAILED.value,
        "message": "Loading configuration from /etc/app.json failed: permission denied",
        "suggestion": "Check file syntax and permissions",
        "context": {"identity": "/etc/app.json", "reason": "permission denied"},
    }


def test_to_dict_omits_empty_fields():
    error = ConfigError(ErrorCode.DIFF_FAILED, "rejected")

    assert error.to_dict() == {"code": 1102, "message": "rejected"}


def test_codes():
    assert NoConfigSourceError().code is ErrorCode.NO_CONFIG_SOURCE
    assert WatchSetupError("f", "r").code is ErrorCode.WATCH_SETUP_FAILED
    assert DiffError(("a", 0), "r").code is ErrorCode.DIFF_FAILED


def test_diff_error_path():
    error = DiffError(("Three", 0, "Thirty"), "cannot compare str with int")

    assert error.path == ("Three", 0, "Thirty")
    assert error.context["path"] == "Three.0.Thirty"
    assert str(error) == "Cannot diff configuration at Three.0.Thirty: cannot compare str with int"
    assert DiffError((), "x").context["path"] == "<root>"


def test_errors_are_config_errors():
    for error in (NoConfigSourceError(), ConfigLoadError("f", "r"), WatchSetupError("f", "r")):
        assert isinstance(error, ConfigError)
        assert isinstance(error, Exception)
