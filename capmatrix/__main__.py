"""Run the API with uvicorn: ``python -m capmatrix``."""

import uvicorn


def main() -> None:
    uvicorn.run("capmatrix.main:app", host="127.0.0.1", port=8000)


if __name__ == "__main__":
    main()
