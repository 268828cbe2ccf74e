"""
Module entry point for: python -m question_extractor

Allows running the extractor directly as a module:
    python -m question_extractor parse <pdf_path> [options]
    python -m question_extractor text <txt_path> [options]
    python -m question_extractor serve [options]
"""

from .cli import cli


def main():
    cli()


if __name__ == "__main__":
    main()
