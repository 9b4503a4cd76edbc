from __future__ import annotations

import logging

import uvicorn

from ledger_gateway.config import HOST, PORT

logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(levelname)s] %(name)s: %(message)s")
uvicorn.run("ledger_gateway.main:app", host=HOST, port=PORT)
