import pytest

from docvault.core.config import Settings
from docvault.core.container import build_container
from docvault.core.exceptions import ConfigurationError


def _settings(**overrides) -> Settings:
    values = {
        "AWS_REGION": "us-east-1",
        "AWS_DOCUMENTS_TABLE_NAME": "documents",
        "AWS_S3_BUCKET_NAME": "docs-bucket",
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


class StubAws:
    dynamodb = object()
    s3 = object()
    lambda_ = object()

    def close(self) -> None:
        pass


def test_auto_create_defaults_off_only_in_production():
    assert _settings(ENVIRONMENT="development").auto_create_table is True
    assert _settings(ENVIRONMENT="production").auto_create_table is False
    assert _settings(ENVIRONMENT="production", AWS_AUTO_CREATE_TABLE=True).auto_create_table is True


def test_blank_names_are_treated_as_unset():
    settings = _settings(AWS_S3_BUCKET_NAME="  ")

    assert settings.AWS_S3_BUCKET_NAME is None
    with pytest.raises(ConfigurationError, match="AWS_S3_BUCKET_NAME environment variable is not set."):
        settings.require("AWS_S3_BUCKET_NAME")


def test_allowed_origins_split_on_commas():
    settings = _settings(ALLOWED_ORIGINS="https://a.example.com, https://b.example.com")

    assert settings.ALLOWED_ORIGINS == ["https://a.example.com", "https://b.example.com"]


def test_thumbnail_prefix_is_trimmed():
    assert _settings(AWS_S3_THUMBNAIL_PREFIX="/thumbs/").thumbnail_prefix == "thumbs"


@pytest.mark.parametrize("missing", ["AWS_REGION", "AWS_DOCUMENTS_TABLE_NAME", "AWS_S3_BUCKET_NAME"])
def test_container_requires_core_settings(missing):
    settings = _settings(**{missing: None})

    with pytest.raises(ConfigurationError, match=missing):
        build_container(settings, aws=StubAws())


def test_container_wires_settings_through():
    settings = _settings(
        AWS_S3_FORCE_PUBLIC_READ=True,
        AWS_RESIZE_LAMBDA_FUNCTION_NAME="resize-fn",
        MAX_UPLOAD_BYTES=2048,
    )

    container = build_container(settings, aws=StubAws(), auto_create=False)

    assert container.uploads.bucket == "docs-bucket"
    assert container.thumbnails.enabled is True
    assert container.documents.make_public is True
    assert container.documents.max_upload_bytes == 2048


def test_thumbnails_disabled_without_function_name():
    container = build_container(_settings(), aws=StubAws())

    assert container.thumbnails.enabled is False
