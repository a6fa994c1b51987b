#!/usr/bin/env python3
"""
Seed script to populate the gallery via API endpoints.

Run:
    python seed/seed_photos.py \
      --base-url https://<api-id>.execute-api.<region>.amazonaws.com/v1 \
      --password <ADMIN_PASSWORD> \
      --images-dir ./sample-photos
"""

import argparse
import mimetypes
import sys
from pathlib import Path
from typing import Any, cast

import requests
from aws_lambda_powertools import Logger

logger = Logger(service="seed")

IMAGE_SUFFIXES = {".jpg", ".jpeg", ".png", ".webp", ".gif"}


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Seed photos via the Portfolio API")

    parser.add_argument(
        "--base-url",
        required=True,
        help="API base URL, without the trailing /photos",
    )
    parser.add_argument(
        "--password",
        required=True,
        help="Admin password used to obtain a bearer token",
    )
    parser.add_argument(
        "--images-dir",
        type=Path,
        default=Path(__file__).parent / "images",
        help="Directory of images to upload",
    )
    parser.add_argument(
        "--limit",
        type=int,
        default=4,
        help="Number of photos to seed",
    )

    return parser.parse_args()


def login(base_url: str, password: str) -> str:
    response = requests.post(f"{base_url}/auth", json={"password": password}, timeout=30)
    response.raise_for_status()
    return cast(str, response.json()["token"])


def title_from_path(path: Path) -> str:
    return path.stem.replace("_", " ").replace("-", " ").strip().title() or path.name


def seed_photos() -> None:
    try:
        args = parse_args()
        base_url = args.base_url.rstrip("/")

        token = login(base_url, args.password)
        headers = {"Authorization": f"Bearer {token}"}

        paths = sorted(
            p for p in args.images_dir.iterdir() if p.suffix.lower() in IMAGE_SUFFIXES
        )[: args.limit]

        logger.info(
            "Starting seeding process",
            extra={"api_base_url": base_url, "count": len(paths)},
        )

        for path in paths:
            content_type = mimetypes.guess_type(path.name)[0] or "application/octet-stream"

            with open(path, "rb") as f:
                response = requests.post(
                    f"{base_url}/photos",
                    headers=headers,
                    data={"title": title_from_path(path), "description": f"Seeded from {path.name}"},
                    files={"photo": (path.name, f, content_type)},
                    timeout=60,
                )

            response_json = cast(dict[str, Any], response.json())

            if response.status_code == 201:
                logger.info(
                    "Seeded photo",
                    extra={"file": path.name, "photo_id": response_json["photo"]["id"]},
                )
            else:
                logger.error(
                    "Failed to seed photo",
                    extra={
                        "file": path.name,
                        "status": response.status_code,
                        "response": response_json,
                    },
                )

        logger.info("Seeding completed")

        list_response = requests.get(f"{base_url}/photos", timeout=30)
        logger.info(
            "List photos response",
            extra={
                "status": list_response.status_code,
                "response": list_response.json() if list_response.ok else list_response.text,
            },
        )

    except Exception as exc:
        logger.exception("Seeding failed", exc_info=exc)
        sys.exit(1)


if __name__ == "__main__":
    seed_photos()
