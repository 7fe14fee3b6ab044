from __future__ import annotations

from survey_insights.UI import run_app


def main() -> None:
    """Launch the Streamlit survey dashboard."""

    run_app()


if __name__ == "__main__":
    main()
