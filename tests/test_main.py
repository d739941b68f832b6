"""Tests for the command-line entry point"""
from pathlib import Path
from unittest.mock import patch
import pytest

from main import main, parse_args


class TestParseArgs:
    """Test flag parsing"""

    def test_no_flags(self):
        """Test omitted flags leave configuration to the environment"""
        assert parse_args([]) == {}

    def test_all_flags(self):
        """Test flags map onto Config fields"""
        overrides = parse_args([
            "--geoip-db", "/data/GeoLite2-Country.mmdb",
            "--forward-url", "http://victoria:8428/api/v1/import/prometheus",
            "--listen-addr", ":9091",
            "--log-level", "debug",
        ])

        assert overrides == {
            "geoip_db": "/data/GeoLite2-Country.mmdb",
            "forward_url": "http://victoria:8428/api/v1/import/prometheus",
            "listen_addr": ":9091",
            "log_level": "debug",
        }


class TestMain:
    """Test startup wiring"""

    def test_main_starts_server(self):
        """Test resolver is opened and uvicorn bound to the listen address"""
        with patch("main.setup_structured_logging"), \
                patch("main.GeoIPResolver.open") as mock_open, \
                patch("main.RelayServer") as mock_server, \
                patch("main.uvicorn.run") as mock_run:
            main(["--listen-addr", "127.0.0.1:9091", "--geoip-db", "/data/country.mmdb"])

        mock_open.assert_called_once_with(Path("/data/country.mmdb"))
        assert mock_server.call_args.kwargs["resolver"] is mock_open.return_value
        mock_run.assert_called_once_with(
            mock_server.return_value.get_app.return_value,
            host="127.0.0.1",
            port=9091,
            log_config=None
        )

    def test_main_without_country_enrichment(self):
        """Test no database is opened when country enrichment is off"""
        with patch.dict("os.environ", {"ENRICH_COUNTRY_CODE": "false"}), \
                patch("main.setup_structured_logging"), \
                patch("main.GeoIPResolver.open") as mock_open, \
                patch("main.RelayServer") as mock_server, \
                patch("main.uvicorn.run"):
            main([])

        mock_open.assert_not_called()
        assert mock_server.call_args.kwargs["resolver"] is None

    def test_main_exits_when_database_missing(self):
        """Test an unreadable database is fatal at startup"""
        with patch("main.setup_structured_logging"), \
                patch("main.GeoIPResolver.open", side_effect=FileNotFoundError("no such file")), \
                patch("main.uvicorn.run") as mock_run:
            with pytest.raises(SystemExit) as exc_info:
                main([])

        assert exc_info.value.code == 1
        mock_run.assert_not_called()

    def test_main_exits_on_invalid_config(self):
        """Test invalid flags are fatal"""
        with patch("main.setup_structured_logging"), patch("main.uvicorn.run") as mock_run:
            with pytest.raises(SystemExit) as exc_info:
                main(["--listen-addr", "nowhere"])

        assert exc_info.value.code == 1
        mock_run.assert_not_called()
