"""
Tests for the certificate directory.

Test plan:
- Static directory: default seed, lookup hit/miss, list order, duplicate ids
- Certificate: status coercion, is_valid, roundtrip, frozen
- File backing: valid file loads; schema violations, bad JSON, missing or
  unreadable files and non-UTF-8 bytes raise DirectoryError with
  INVALID_DIRECTORY
"""

import json
from pathlib import Path

import pytest

from lexattest.certificates import (
    DEFAULT_CERTIFICATES,
    Certificate,
    CertificateStatus,
    StaticCertificateDirectory,
    load_certificate_file,
)
from lexattest.errors import ERROR_INVALID_DIRECTORY, DirectoryError


def _make_certificate(**overrides: object) -> Certificate:
    kwargs: dict[str, object] = {
        "id": "cert-9",
        "name": "Ana Rodriguez",
        "role": "Paralegal",
        "issued": "2024-01-01",
        "expires": "2026-01-01",
        "status": CertificateStatus.VALID,
        "public_key": "30818902818aa...",
    }
    kwargs.update(overrides)
    return Certificate(**kwargs)  # type: ignore[arg-type]


class TestStaticDirectory:
    def test_default_seed(self) -> None:
        directory = StaticCertificateDirectory()
        assert [c.id for c in directory.list()] == ["cert-1", "cert-2"]
        cert = directory.lookup("cert-1")
        assert cert is not None
        assert cert.name == "Sarah Johnson"
        assert cert.role == "Attorney"
        assert cert.bar_number == "12345"
        assert cert.is_valid

    def test_lookup_miss(self) -> None:
        assert StaticCertificateDirectory().lookup("cert-404") is None

    def test_custom_certificates_replace_seed(self) -> None:
        directory = StaticCertificateDirectory([_make_certificate()])
        assert len(directory) == 1
        assert "cert-9" in directory
        assert "cert-1" not in directory

    def test_later_duplicate_wins(self) -> None:
        directory = StaticCertificateDirectory(
            [_make_certificate(), _make_certificate(status=CertificateStatus.REVOKED)]
        )
        cert = directory.lookup("cert-9")
        assert cert is not None
        assert cert.status == CertificateStatus.REVOKED


class TestCertificate:
    def test_status_string_is_coerced(self) -> None:
        cert = _make_certificate(status="expired")
        assert cert.status is CertificateStatus.EXPIRED
        assert not cert.is_valid

    def test_unknown_status_rejected(self) -> None:
        with pytest.raises(ValueError):
            _make_certificate(status="suspended")

    def test_empty_id_rejected(self) -> None:
        with pytest.raises(ValueError):
            _make_certificate(id="")

    def test_roundtrip(self) -> None:
        cert = DEFAULT_CERTIFICATES[1]
        assert Certificate.from_dict(cert.to_dict()) == cert

    def test_to_dict_omits_missing_bar_number(self) -> None:
        assert "bar_number" not in _make_certificate().to_dict()

    def test_frozen(self) -> None:
        cert = _make_certificate()
        with pytest.raises(AttributeError):
            cert.status = CertificateStatus.REVOKED  # type: ignore[misc]


class TestCertificateFile:
    def _write(self, tmp_path: Path, document: object) -> Path:
        path = tmp_path / "certificates.json"
        path.write_text(json.dumps(document), encoding="utf-8")
        return path

    def test_loads_valid_file(self, tmp_path: Path) -> None:
        path = self._write(
            tmp_path,
            {"certificates": [_make_certificate().to_dict(), DEFAULT_CERTIFICATES[0].to_dict()]},
        )
        directory = load_certificate_file(path)
        assert [c.id for c in directory.list()] == ["cert-9", "cert-1"]

    def test_missing_field_rejected(self, tmp_path: Path) -> None:
        entry = _make_certificate().to_dict()
        del entry["public_key"]
        path = self._write(tmp_path, {"certificates": [entry]})
        with pytest.raises(DirectoryError) as exc_info:
            load_certificate_file(path)
        assert exc_info.value.error_code == ERROR_INVALID_DIRECTORY
        assert exc_info.value.details["path"] == "certificates/0"

    def test_bad_status_rejected(self, tmp_path: Path) -> None:
        entry = _make_certificate().to_dict()
        entry["status"] = "pending"
        path = self._write(tmp_path, {"certificates": [entry]})
        with pytest.raises(DirectoryError):
            load_certificate_file(path)

    def test_not_json_rejected(self, tmp_path: Path) -> None:
        path = tmp_path / "certificates.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(DirectoryError):
            load_certificate_file(path)

    def test_missing_file_rejected(self, tmp_path: Path) -> None:
        path = tmp_path / "absent.json"
        with pytest.raises(DirectoryError) as exc_info:
            load_certificate_file(path)
        assert exc_info.value.error_code == ERROR_INVALID_DIRECTORY
        assert exc_info.value.details["path"] == str(path)
        assert isinstance(exc_info.value.__cause__, FileNotFoundError)

    def test_directory_path_rejected(self, tmp_path: Path) -> None:
        with pytest.raises(DirectoryError):
            load_certificate_file(tmp_path)

    def test_non_utf8_rejected(self, tmp_path: Path) -> None:
        path = tmp_path / "certificates.json"
        path.write_bytes(b'{"certificates": ["\xff\xfe"]}')
        with pytest.raises(DirectoryError) as exc_info:
            load_certificate_file(path)
        assert isinstance(exc_info.value.__cause__, UnicodeDecodeError)
