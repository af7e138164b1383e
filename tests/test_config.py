"""Tests for validator configuration."""

import json
from dataclasses import dataclass

import pytest

from dataknobs_validator import Validator, ValidatorConfig, field
from dataknobs_validator.exceptions import ConfigurationError


@dataclass
class Profile:
    nickname: str = field("required", name="nickname", default="")


class TestValidatorConfig:
    """Test building configurations."""

    def test_defaults(self):
        """Test the default settings."""
        config = ValidatorConfig()
        assert config.tag_name == "valid"
        assert config.name_key == "json"
        assert config.embedded_key == "embedded"
        assert config.locale == "en"
        assert config.translate is True
        assert config.strict_messages is False

    def test_from_dict(self):
        """Test building from a dictionary."""
        config = ValidatorConfig.from_dict({"locale": "fr", "translate": "false"})
        assert config.locale == "fr"
        assert config.translate is False

    def test_from_dict_unknown_key(self):
        """Test that unknown keys are rejected."""
        with pytest.raises(ConfigurationError) as exc_info:
            ValidatorConfig.from_dict({"locale": "en", "colour": "blue"})
        assert exc_info.value.context["unknown"] == ["colour"]

    def test_invalid_values(self):
        """Test that empty keys and non-mapping sections are rejected."""
        with pytest.raises(ConfigurationError):
            ValidatorConfig(tag_name="")
        with pytest.raises(ConfigurationError):
            ValidatorConfig(attributes=["a"])
        with pytest.raises(ConfigurationError):
            ValidatorConfig.from_dict({"translate": "maybe"})

    def test_from_yaml_file(self, tmp_path):
        """Test loading a YAML file with a validator section."""
        path = tmp_path / "config.yaml"
        path.write_text(
            "validator:\n"
            "  locale: en\n"
            "  attributes:\n"
            "    Profile.nickname: handle\n",
            encoding="utf-8",
        )
        config = ValidatorConfig.from_file(path)
        assert config.attributes == {"Profile.nickname": "handle"}

    def test_from_json_file(self, tmp_path):
        """Test loading a JSON file."""
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"tag_name": "rules", "strict_messages": True}), encoding="utf-8")
        config = ValidatorConfig.from_file(path)
        assert config.tag_name == "rules"
        assert config.strict_messages is True

    def test_from_file_errors(self, tmp_path):
        """Test missing files and unsupported formats."""
        with pytest.raises(ConfigurationError):
            ValidatorConfig.from_file(tmp_path / "missing.yaml")
        path = tmp_path / "config.toml"
        path.write_text("locale = 'en'\n", encoding="utf-8")
        with pytest.raises(ConfigurationError):
            ValidatorConfig.from_file(path)

    @pytest.mark.parametrize(
        "filename,content",
        [("config.yaml", "validator: [unclosed\n"), ("config.json", "{\"locale\": ")],
    )
    def test_malformed_file(self, tmp_path, filename, content):
        """Test that unparsable files raise ConfigurationError."""
        path = tmp_path / filename
        path.write_text(content, encoding="utf-8")
        with pytest.raises(ConfigurationError) as exc_info:
            ValidatorConfig.from_file(path)
        assert exc_info.value.__cause__ is not None

    def test_environment_overrides(self):
        """Test overriding settings from environment variables."""
        environ = {
            "DATAKNOBS_VALIDATOR_LOCALE": "de",
            "DATAKNOBS_VALIDATOR_TRANSLATE": "no",
            "UNRELATED": "x",
        }
        config = ValidatorConfig().with_environment_overrides(environ=environ)
        assert config.locale == "de"
        assert config.translate is False
        assert config.tag_name == "valid"

    def test_environment_overrides_from_os(self, monkeypatch):
        """Test reading os.environ by default."""
        monkeypatch.setenv("DATAKNOBS_VALIDATOR_TAG_NAME", "rules")
        config = ValidatorConfig().with_environment_overrides()
        assert config.tag_name == "rules"

    def test_to_dict(self):
        """Test serializing the configuration."""
        assert ValidatorConfig().to_dict()["locale"] == "en"


class TestConfiguredValidator:
    """Test that a validator honors its configuration."""

    def test_attributes_from_config(self):
        """Test display attributes supplied through the config."""
        validator = Validator(ValidatorConfig(attributes={"Profile.nickname": "handle"}))
        errors = validator.validate(Profile())
        assert errors[0].message == "The handle field is required."

    def test_custom_messages_from_config(self):
        """Test custom messages supplied through the config."""
        validator = Validator(ValidatorConfig(custom_messages={"nickname.required": "Pick a nickname."}))
        assert str(validator.validate(Profile())) == "Pick a nickname."

    def test_custom_metadata_keys(self):
        """Test reading rules and names from other metadata keys."""
        import dataclasses

        @dataclass
        class Legacy:
            nickname: str = dataclasses.field(default="", metadata={"rules": "required", "alias": "nick"})

        validator = Validator(ValidatorConfig(tag_name="rules", name_key="alias", translate=False))
        errors = validator.validate(Legacy())
        assert errors[0].name == "nick"
        assert Validator().validate(Legacy()) is None

    def test_strict_messages(self):
        """Test that strict translation raises for unknown rules."""
        from dataknobs_validator.exceptions import TranslationError

        validator = Validator(ValidatorConfig(strict_messages=True))
        validator.register_rule("never", lambda value, record, rule: False)

        @dataclass
        class Thing:
            name: str = field("never", default="x")

        with pytest.raises(TranslationError):
            validator.validate(Thing())

    def test_unbundled_locale_uses_config_messages(self):
        """Test a locale with messages supplied only through the config."""
        validator = Validator(ValidatorConfig(locale="xx", messages={"required": "{{.Attribute}}!"}))
        assert str(validator.validate(Profile())) == "nickname!"
