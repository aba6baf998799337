from datetime import datetime, timezone
from pathlib import Path

from jinja2 import Environment, PackageLoader, select_autoescape

from showimport.models import ImportResult


def _environment() -> Environment:
    env = Environment(
        loader=PackageLoader("showimport", "templates"),
        autoescape=select_autoescape(["html"]),
        trim_blocks=True,
        lstrip_blocks=True,
    )
    env.globals["generated_at"] = datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M UTC")
    return env


def render_summary(result: ImportResult, files: list[str], dry_run: bool = False) -> str:
    """Plain-text end-of-run summary printed by the CLI."""
    template = _environment().get_template("summary.txt")
    return template.render(result=result, files=files, dry_run=dry_run, rule="=" * 60)


def build_report(result: ImportResult, output_path: Path, files: list[str], dry_run: bool = False) -> None:
    """Write an HTML report listing every event's outcome."""
    lines = [
        {"kind": outcome.kind.value, "message": message}
        for outcome, message in zip(result.outcomes, result.messages)
    ]
    output_path.parent.mkdir(parents=True, exist_ok=True)
    _render(_environment(), "report.html", output_path, {
        "page_title": "Discovery import report",
        "result": result,
        "files": files,
        "dry_run": dry_run,
        "lines": lines,
    })


def _render(env: Environment, template_name: str, dest: Path, context: dict) -> None:
    template = env.get_template(template_name)
    dest.write_text(template.render(**context), encoding="utf-8")
