"""
Unit tests for Config.
"""

import pytest

from utils.config import DEFAULT_CLOUD_COMMENT_URL_TEMPLATE, DEFAULT_MODEL_ID, Config


class TestConfigDefaults:

    def test_defaults(self, override_test_env):
        config = Config()

        assert config.BB_REPO_ACCESS_TOKEN == "test_token"
        assert config.AWS_REGION == "us-east-1"
        assert config.MODEL_ID == DEFAULT_MODEL_ID
        assert config.MODEL_MAX_OUTPUT_TOKENS == 200
        assert config.MODEL_TEMPERATURE == 0.5
        assert config.MODEL_TIMEOUT_SECONDS == 60.0
        assert config.PUBLISH_TIMEOUT_SECONDS == 30.0
        assert config.CLOUD_COMMENT_URL_TEMPLATE == DEFAULT_CLOUD_COMMENT_URL_TEMPLATE
        assert config.REVIEW_FETCH_DIFF is False
        assert config.PORT == 8000
        assert config.BB_SERVER_URL is None

    @pytest.mark.parametrize("raw,expected", [("true", True), ("1", True), ("YES", True), ("no", False), ("", False)])
    def test_fetch_diff_flag(self, override_test_env, monkeypatch, raw, expected):
        monkeypatch.setenv("REVIEW_FETCH_DIFF", raw)

        assert Config().REVIEW_FETCH_DIFF is expected


class TestConfigValidation:

    @pytest.mark.parametrize("name", ["BB_REPO_ACCESS_TOKEN", "AWS_REGION"])
    def test_required_variables(self, override_test_env, monkeypatch, name):
        monkeypatch.setenv(name, "")

        with pytest.raises(ValueError, match=name):
            Config()

    @pytest.mark.parametrize("value", ["-0.1", "1.01"])
    def test_temperature_range(self, override_test_env, monkeypatch, value):
        monkeypatch.setenv("MODEL_TEMPERATURE", value)

        with pytest.raises(ValueError, match="MODEL_TEMPERATURE"):
            Config()

    @pytest.mark.parametrize(
        "name", ["MODEL_MAX_OUTPUT_TOKENS", "MODEL_TIMEOUT_SECONDS", "PUBLISH_TIMEOUT_SECONDS", "MODEL_MAX_INPUT_CHARS"]
    )
    def test_limits_must_be_positive(self, override_test_env, monkeypatch, name):
        monkeypatch.setenv(name, "0")

        with pytest.raises(ValueError, match=name):
            Config()

    def test_non_numeric_value(self, override_test_env, monkeypatch):
        monkeypatch.setenv("MODEL_MAX_OUTPUT_TOKENS", "lots")

        with pytest.raises(ValueError, match="MODEL_MAX_OUTPUT_TOKENS"):
            Config()

    def test_aws_keys_must_come_in_pairs(self, override_test_env, monkeypatch):
        monkeypatch.setenv("AWS_ACCESS_KEY_ID", "AKIDEXAMPLE")

        with pytest.raises(ValueError, match="AWS_SECRET_ACCESS_KEY"):
            Config()
