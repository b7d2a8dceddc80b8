from __future__ import annotations

import dataclasses
import json
import logging
import sys
import time

import pytest
from pydantic import ValidationError

from blobgate.app.core import env as env_mod
from blobgate.app.core.logging import JsonFormatter, setup_logging
from blobgate.app.settings import GatewaySettings
from blobgate.gateway import StorageGateway
from blobgate.security.signing import verify_url_params


class TestGatewaySettings:
    def test_reads_prefixed_env(self, monkeypatch, tmp_path):
        monkeypatch.setenv("STORAGE_JWT_SECRET", "from-env")
        monkeypatch.setenv("STORAGE_BACKEND", "memory")
        monkeypatch.setenv("STORAGE_STRICT_GENERATION_MATCH", "true")
        monkeypatch.setenv("STORAGE_DATA_DIR", str(tmp_path))

        s = GatewaySettings()
        assert s.jwt_secret.get_secret_value() == "from-env"
        assert s.backend == "memory"
        assert s.strict_generation_match is True
        assert s.data_dir == tmp_path

    def test_defaults(self):
        s = GatewaySettings(jwt_secret="x")
        assert s.backend == "local"
        assert s.strict_generation_match is False
        assert s.uniform_not_found is True
        assert s.max_request_bytes is None

    def test_secret_required(self, monkeypatch):
        monkeypatch.delenv("STORAGE_JWT_SECRET", raising=False)
        with pytest.raises(ValidationError):
            GatewaySettings(_env_file=None)

    def test_secret_not_in_repr(self):
        assert "hunter2" not in repr(GatewaySettings(jwt_secret="hunter2"))

    def test_rejects_unknown_backend(self):
        with pytest.raises(ValidationError):
            GatewaySettings(jwt_secret="x", backend="s3")


class TestStorageGateway:
    def test_from_settings(self):
        gw = StorageGateway.from_settings(
            GatewaySettings(jwt_secret="abc", strict_generation_match=True, uniform_not_found=False)
        )
        assert gw.secret == b"abc"
        assert gw.strict_generation_match is True
        assert gw.uniform_not_found is False
        assert "abc" not in repr(gw)

    def test_mints_with_configured_ttls(self):
        gw = StorageGateway.from_secret("abc", signed_url_ttl_seconds=30, token_ttl_seconds=90)

        query = gw.blob_query("u1", "b1", now=1000)
        assert query["exp"] == "1030"
        verify_url_params(["u1", "b1", "1030"], query["exp"], query["signature"], gw.secret, now=1000)

        claims = gw.claims.decode(gw.issue_token("u1", "doc1", now=int(time.time())))
        assert claims["exp"] - claims["iat"] == 90

    def test_is_immutable(self):
        gw = StorageGateway.from_secret("abc")
        with pytest.raises(dataclasses.FrozenInstanceError):
            gw.secret = b"other"


class TestEnv:
    @pytest.mark.parametrize(
        "raw, expected",
        [("prod", env_mod.Env.PROD), ("Production", env_mod.Env.PROD), ("ci", env_mod.Env.TEST), ("", None)],
    )
    def test_normalize(self, raw, expected):
        assert env_mod.normalize_env(raw) == expected

    def test_pick(self):
        assert env_mod.pick(prod="a", nonprod="b", env=env_mod.Env.PROD) == "a"
        assert env_mod.pick(prod="a", nonprod="b", env=env_mod.Env.DEV) == "b"

    def test_flags(self):
        flags = env_mod.get_env_flags(env_mod.Env.PROD)
        assert flags.is_prod is True
        assert flags.is_local is False


class TestLogging:
    def test_json_formatter_includes_storage_context(self):
        record = logging.LogRecord("blobgate.test", logging.INFO, __file__, 1, "stored", None, None)
        record.user_id = "u1"
        record.object_id = "b1"
        record.generation = 4

        payload = json.loads(JsonFormatter().format(record))
        assert payload["message"] == "stored"
        assert payload["storage"] == {"user_id": "u1", "object_id": "b1", "generation": 4}
        assert "error" not in payload

    def test_json_formatter_includes_exception(self):
        try:
            raise ValueError("boom")
        except ValueError:
            record = logging.LogRecord(
                "blobgate.test", logging.ERROR, __file__, 1, "failed", None, sys.exc_info()
            )
        payload = json.loads(JsonFormatter().format(record))
        assert payload["error"]["type"] == "ValueError"
        assert payload["error"]["message"] == "boom"

    def test_setup_logging_honours_env(self, monkeypatch):
        root = logging.getLogger()
        saved_level, saved_handlers = root.level, list(root.handlers)
        monkeypatch.setenv("LOG_LEVEL", "warning")
        monkeypatch.setenv("LOG_FORMAT", "json")
        try:
            setup_logging()
            assert root.level == logging.WARNING
            assert any(isinstance(h.formatter, JsonFormatter) for h in root.handlers)
        finally:
            root.handlers[:] = saved_handlers
            root.setLevel(saved_level)
