"""Smoke test para el backend de VPS Monitor."""

from __future__ import annotations

import sys
import tempfile
from pathlib import Path

from fastapi.testclient import TestClient

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from vps_monitor.web.server import MonitorService, create_app


def run_smoke() -> None:
    with tempfile.TemporaryDirectory() as tmp:
        service = MonitorService(db_path=Path(tmp) / "history.db")
        with TestClient(create_app(service)) as client:
            print(f"Iniciando servicio con histórico en {service.history.path}")
            with client.websocket_connect("/ws") as ws:
                first = ws.receive_json()
                pushed = ws.receive_json()
            client.portal.call(service.recorder.record)
            current = client.get("/api/current").json()
            history = client.get("/api/history", params={"range": "1h"}).json()
        assert first["event"] == "metrics", "Evento inicial inesperado"
        assert pushed["event"] == "metrics", "No se recibió ningún push"
        assert "cpu" in current, "Snapshot sin datos de CPU"
        assert "memory" in current, "Snapshot sin datos de memoria"
        assert history, "Histórico vacío tras registrar una fila"
        print("SMOKE_OK", {
            "cpu_load": current.get("cpu", {}).get("load"),
            "history_points": len(history),
        })


if __name__ == "__main__":
    run_smoke()
