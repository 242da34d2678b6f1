from pathlib import Path

from jinja2 import Environment, FileSystemLoader, select_autoescape

TEMPLATE_DIR = Path(__file__).resolve().parent.parent / "templates"

env = Environment(
    loader=FileSystemLoader(str(TEMPLATE_DIR)),
    autoescape=select_autoescape(["html"])
)


def format_countdown(seconds: int) -> str:
    return f"{seconds // 60}:{seconds % 60:02d}"


env.filters["countdown"] = format_countdown


def render_template(template_path: str, **context) -> str:
    template = env.get_template(template_path)
    return template.render(**context)
