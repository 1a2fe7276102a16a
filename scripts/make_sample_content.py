#!/usr/bin/env python
from __future__ import annotations

import argparse
import json
from pathlib import Path


def build_sample(title: str, paragraphs: int) -> dict:
    body = [
        {
            "type": "paragraph",
            "content": [
                {
                    "type": "text",
                    "text": f"Clause {index}. The parties agree to the terms set out in this section "
                    "and acknowledge that they have read and understood them.",
                }
            ],
        }
        for index in range(1, paragraphs + 1)
    ]
    return {
        "type": "doc",
        "content": [
            {"type": "heading", "attrs": {"level": 1}, "content": [{"type": "text", "text": title}]},
            *body,
            {
                "type": "bulletList",
                "content": [
                    {"type": "listItem", "content": [{"type": "paragraph", "content": [{"type": "text", "text": "Signed copy retained by both parties"}]}]},
                    {"type": "listItem", "content": [{"type": "paragraph", "content": [{"type": "text", "text": "Governing law as agreed"}]}]},
                ],
            },
            {"type": "blockquote", "content": [{"type": "paragraph", "content": [{"type": "text", "text": "This document is a draft preview."}]}]},
        ],
    }


def main() -> None:
    parser = argparse.ArgumentParser(description="Generate a sample Tiptap JSON document for previews")
    parser.add_argument("--output", required=True, help="Output file path (.json)")
    parser.add_argument("--title", default="Service Agreement", help="Document heading")
    parser.add_argument("--paragraphs", type=int, default=3, help="Number of body paragraphs")
    args = parser.parse_args()

    output = Path(args.output)
    output.parent.mkdir(parents=True, exist_ok=True)
    with output.open("w", encoding="utf-8") as fp:
        json.dump(build_sample(args.title, args.paragraphs), fp, ensure_ascii=False, indent=2)

    print(f"Sample content written to {output}")


if __name__ == "__main__":
    main()
