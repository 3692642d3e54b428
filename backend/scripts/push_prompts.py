"""Push the resume-review prompts to Langfuse as versioned chat prompts.

Run once to seed Langfuse, then edit prompts via the Langfuse UI.
Re-run to create a new version (old versions are preserved).

Usage:
    python scripts/push_prompts.py [--label production]
"""

import argparse
import sys
from pathlib import Path

from dotenv import load_dotenv
load_dotenv(Path(__file__).resolve().parent.parent / ".env")

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from langfuse import Langfuse  # noqa: E402

from resume_review.core.fallback_prompts import FALLBACK_PROMPTS  # noqa: E402


def _to_langfuse_template(text: str) -> str:
    """str.format placeholders -> Langfuse mustache variables.

    ``{resume_text}`` becomes ``{{resume_text}}`` and escaped JSON braces
    ``{{``/``}}`` become literal ``{``/``}``.
    """
    out = []
    i = 0
    while i < len(text):
        pair = text[i:i + 2]
        if pair in ("{{", "}}"):
            out.append(pair[0])
            i += 2
        elif text[i] == "{":
            end = text.index("}", i)
            out.append("{{" + text[i + 1:end] + "}}")
            i = end + 1
        else:
            out.append(text[i])
            i += 1
    return "".join(out)


def main():
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--label", default="production", help="Langfuse label to attach")
    args = parser.parse_args()

    langfuse = Langfuse()
    for name, prompt in FALLBACK_PROMPTS.items():
        langfuse.create_prompt(
            name=name,
            type="chat",
            prompt=[
                {"role": "system", "content": prompt["system"]},
                {"role": "user", "content": _to_langfuse_template(prompt["user"])},
            ],
            config=prompt["config"],
            labels=[args.label],
        )
        print(f"Pushed '{name}' ({args.label})")

    langfuse.flush()


if __name__ == "__main__":
    main()
