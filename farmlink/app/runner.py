# farmlink/app/runner.py
from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Optional

from farmlink.app.config import FarmLinkConfig
from farmlink.app.controller import FarmController
from farmlink.core.errors import EndpointConfigError
from farmlink.core.recording.trace import OperationTraceLogger
from farmlink.interfaces.operation_sink import OperationSink
from farmlink.model.endpoint import Endpoint
from farmlink.model.loader import EndpointLoader
from farmlink.transport.registry import TransportDriverRegistry


@dataclass(frozen=True)
class AppRun:
    controller: FarmController
    config: FarmLinkConfig
    endpoint: Endpoint
    loader: EndpointLoader
    op_sink: OperationSink

    def close(self) -> None:
        self.controller.close()
        self.op_sink.close()


def load_farms(farms_file: str | Path) -> EndpointLoader:
    """Load the farms file, mapping file problems to EndpointConfigError."""
    loader = EndpointLoader(farms_file)
    try:
        loader.load()
    except FileNotFoundError as e:
        raise EndpointConfigError(
            str(e),
            hint="Pass --farms-file or create metadata/farms.yml.",
        ) from None
    except (ValueError, TypeError) as e:
        raise EndpointConfigError(
            f"Invalid farms file {farms_file}.",
            hint=str(e),
        ) from None
    return loader


def resolve_config(cfg: FarmLinkConfig, loader: EndpointLoader) -> FarmLinkConfig:
    """Fill fields left unset on `cfg` from the farms file defaults."""
    d = loader.defaults
    return replace(
        cfg,
        poll_period_s=cfg.poll_period_s if cfg.poll_period_s is not None else d["poll_period_s"],
        max_workers=cfg.max_workers if cfg.max_workers is not None else d["max_workers"],
        connect_timeout_s=cfg.connect_timeout_s if cfg.connect_timeout_s is not None else d["connect_timeout_s"],
    )


def start_run(
    cfg: FarmLinkConfig,
    *,
    drivers: Optional[TransportDriverRegistry] = None,
    loader: Optional[EndpointLoader] = None,
) -> AppRun:
    log = logging.getLogger(__name__)

    loader = loader or load_farms(cfg.farms_file)
    endpoint = loader.get_endpoint(cfg.farm_id)
    if endpoint is None:
        raise EndpointConfigError(
            f"Unknown farm id {cfg.farm_id}.",
            hint=f"Known farms: {sorted(loader.endpoints) or 'none'} (see: farmlink farms).",
            details={"farms_file": str(cfg.farms_file)},
        )

    cfg = resolve_config(cfg, loader)

    op_sink = OperationTraceLogger(
        logger=logging.getLogger("operations"),
        file_path=Path(cfg.trace_path) if cfg.trace_path else None,
        flush_interval_s=0.5,
    )

    controller = FarmController(
        cfg,
        endpoint=endpoint,
        drivers=drivers,
        op_sink=op_sink,
        logger=log,
    )
    log.info("RUN_START farm=%d host=%s workers=%d", endpoint.farm_id, endpoint.host, cfg.max_workers)

    return AppRun(
        controller=controller,
        config=cfg,
        endpoint=endpoint,
        loader=loader,
        op_sink=op_sink,
    )
