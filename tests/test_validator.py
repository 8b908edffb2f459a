#!/usr/bin/env python3
"""
DIAGPACK VALIDATOR SUITE
------------------------
Input normalization and the fail-fast rules that run before any
collection begins.
"""

import pytest

from diagpack.core.errors import UserCancelled, ValidationError
from diagpack.core.models import DeploymentType
from diagpack.validator.validator import DiagValidator, RawInputs, normalize_domain

DOMAIN_VARIANTS = [
    "anomalo.example.com",
    "http://anomalo.example.com",
    "https://anomalo.example.com",
    "www.anomalo.example.com",
    "anomalo.example.com/",
    "https://www.anomalo.example.com/",
    "  https://anomalo.example.com/  ",
]


@pytest.mark.parametrize("raw", DOMAIN_VARIANTS)
def test_domain_variants_normalize_to_same_host(raw):
    assert normalize_domain(raw) == "anomalo.example.com"


@pytest.mark.parametrize("raw", ["", "   ", "anomalo", "anomalo example.com", "https://", "host.c0m", "anomalo.x"])
def test_invalid_domains_are_rejected(formatter, tmp_path, raw):
    validator = DiagValidator(formatter, cwd=tmp_path)
    with pytest.raises(ValidationError) as exc:
        validator.validate(RawInputs(deployment_type="kubernetes", namespace="anomalo", domain=raw))
    assert exc.value.field == "domain"


def test_valid_kubernetes_inputs_build_config(formatter, tmp_path):
    validator = DiagValidator(formatter, cwd=tmp_path)
    config = validator.validate(RawInputs(
        deployment_type=" Kubernetes ", namespace="anomalo", domain="https://anomalo.example.com/",
        output="bundle", log_lines="500", max_pods=10,
    ))

    assert config.deployment_type is DeploymentType.KUBERNETES
    assert config.domain == "anomalo.example.com"
    assert config.output_dir == tmp_path / "bundle"
    assert config.log_lines == 500
    assert config.max_pods == 10
    assert config.health_check_url == "https://anomalo.example.com/health_check?metrics=1"
    assert config.archive_path == tmp_path / "bundle.zip"


def test_config_is_immutable(formatter, tmp_path):
    config = DiagValidator(formatter, cwd=tmp_path).validate(
        RawInputs(deployment_type="docker", domain="anomalo.example.com"))
    with pytest.raises(Exception):
        config.domain = "other.example.com"


def test_unknown_deployment_type(formatter, tmp_path):
    with pytest.raises(ValidationError) as exc:
        DiagValidator(formatter, cwd=tmp_path).validate(
            RawInputs(deployment_type="nomad", domain="anomalo.example.com"))
    assert exc.value.field == "type"


@pytest.mark.parametrize("namespace", ["", "  ", "ano_malo", "anomalo/prod", "name space"])
def test_kubernetes_namespace_rules(formatter, tmp_path, namespace):
    with pytest.raises(ValidationError) as exc:
        DiagValidator(formatter, cwd=tmp_path).validate(
            RawInputs(deployment_type="kubernetes", namespace=namespace, domain="anomalo.example.com"))
    assert exc.value.field == "namespace"


def test_docker_ignores_namespace(formatter, tmp_path):
    config = DiagValidator(formatter, cwd=tmp_path).validate(
        RawInputs(deployment_type="docker", namespace="whatever_invalid", domain="anomalo.example.com",
                  include_secret="anomalo-env-secrets"))
    assert config.namespace == ""
    assert config.include_secret is None


@pytest.mark.parametrize("field,value", [
    ("log_lines", "0"), ("log_lines", "-5"), ("log_lines", "ten"), ("log_lines", "2.5"),
    ("max_pods", 0), ("max_pods", "abc"), ("max_containers", ""), ("max_containers", True),
])
def test_numeric_limits_must_be_positive_integers(formatter, tmp_path, field, value):
    raw = RawInputs(deployment_type="kubernetes", namespace="anomalo", domain="anomalo.example.com")
    setattr(raw, field, value)
    with pytest.raises(ValidationError):
        DiagValidator(formatter, cwd=tmp_path).validate(raw)


def test_large_log_line_count_is_advisory(formatter, console_buffer, tmp_path):
    config = DiagValidator(formatter, cwd=tmp_path).validate(
        RawInputs(deployment_type="docker", domain="anomalo.example.com", log_lines="20000"))
    assert config.log_lines == 20000
    assert "very large" in console_buffer.getvalue()


def test_missing_parent_directory_fails(formatter, tmp_path):
    with pytest.raises(ValidationError) as exc:
        DiagValidator(formatter, cwd=tmp_path).validate(
            RawInputs(deployment_type="docker", domain="anomalo.example.com", output="missing/sub/dir"))
    assert exc.value.field == "output"


def test_default_output_name_is_timestamped(formatter, tmp_path):
    config = DiagValidator(formatter, cwd=tmp_path).validate(
        RawInputs(deployment_type="docker", domain="anomalo.example.com"))
    assert config.output_dir.parent == tmp_path
    assert config.output_dir.name.startswith("anomalo_diag_")


class TestExistingOutput:

    def _raw(self, **kwargs):
        return RawInputs(deployment_type="docker", domain="anomalo.example.com", output="existing", **kwargs)

    def test_non_interactive_refuses(self, formatter, tmp_path):
        (tmp_path / "existing").mkdir()
        with pytest.raises(ValidationError):
            DiagValidator(formatter, cwd=tmp_path).validate(self._raw(interactive=False))

    def test_overwrite_flag_skips_question(self, formatter, tmp_path):
        (tmp_path / "existing").mkdir()
        asked = []
        validator = DiagValidator(formatter, confirm=lambda q: asked.append(q) or False, cwd=tmp_path)
        config = validator.validate(self._raw(interactive=False, overwrite=True))
        assert config.overwrite is True
        assert asked == []

    def test_interactive_confirmation(self, formatter, tmp_path):
        (tmp_path / "existing").mkdir()
        validator = DiagValidator(formatter, confirm=lambda q: True, cwd=tmp_path)
        assert validator.validate(self._raw()).overwrite is True

    def test_interactive_decline_is_a_clean_cancel(self, formatter, tmp_path):
        (tmp_path / "existing").mkdir()
        validator = DiagValidator(formatter, confirm=lambda q: False, cwd=tmp_path)
        with pytest.raises(UserCancelled):
            validator.validate(self._raw())
