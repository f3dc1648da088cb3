import uvicorn

from budget_ledger.logger import get_logging_config


def run() -> None:
    uvicorn.run(
        "budget_ledger.app:app",
        host="0.0.0.0",
        port=8000,
        log_config=get_logging_config(),
    )


if __name__ == "__main__":
    run()
