"""
Tests for application startup and unhandled errors
"""

from unittest.mock import patch

from fastapi.testclient import TestClient

from time_server import main


class TestRun:
    """Test the console entry point"""

    def test_startup_failure_is_logged(self):
        """Test that a failing server start is logged, not raised"""
        with patch.object(main.uvicorn, "run", side_effect=OSError("address in use")) as mock_run, \
                patch.object(main, "logger") as mock_logger:
            main.run()

        mock_run.assert_called_once()
        mock_logger.error.assert_called_once()
        assert mock_logger.error.call_args[0][0] == "Error starting time tool server"

    def test_run_uses_settings(self):
        with patch.object(main.uvicorn, "run") as mock_run:
            main.run()

        kwargs = mock_run.call_args[1]
        assert kwargs["port"] == main.settings.port
        assert kwargs["log_level"] == "info"


class TestGlobalExceptionHandler:
    """Test sanitized 500 responses"""

    def test_unexpected_error(self):
        client = TestClient(main.app, raise_server_exceptions=False)

        with patch("time_server.services.tools.call_tool", side_effect=RuntimeError("boom")):
            response = client.post("/tools/call", json={"name": "get_current_time"})

        assert response.status_code == 500
        assert response.json()["type"] == "RuntimeError"

    def test_production_hides_details(self):
        client = TestClient(main.app, raise_server_exceptions=False)

        with patch.object(main.settings, "environment", "production"), \
                patch("time_server.services.tools.call_tool", side_effect=RuntimeError("boom")):
            response = client.post("/tools/call", json={"name": "get_current_time"})

        assert response.status_code == 500
        assert response.json() == {"detail": "Internal server error"}
