#!/usr/bin/env python3
"""Run the demo session app"""
import uvicorn

if __name__ == "__main__":
    uvicorn.run(
        "tablesession.main:create_app",
        factory=True,
        host="127.0.0.1",
        port=8500,
        log_level="info",
    )
