from jinja2 import Environment, FileSystemLoader, select_autoescape

from gst_nexus.utils.constants import TEMPLATES_DIR
from gst_nexus.utils.formatting import format_currency, format_date


class TemplateEngine:
    _env = None

    @classmethod
    def get_env(cls):
        """Singleton pattern for Jinja Environment"""
        if cls._env is None:
            cls._env = Environment(
                loader=FileSystemLoader(TEMPLATES_DIR),
                autoescape=select_autoescape(['html']),
                auto_reload=True,
            )
            cls._env.filters['currency'] = format_currency
            cls._env.filters['display_date'] = format_date
        return cls._env

    @classmethod
    def render_document(cls, template_name: str, model_dict: dict) -> str:
        """Render any template from the templates folder with the given context."""
        env = cls.get_env()
        template = env.get_template(template_name)
        return template.render(**model_dict)
