import logging
from typing import Iterable, Optional

from jinja2 import Environment, FileSystemLoader, PackageLoader, TemplateError, select_autoescape

from book import Book
from config import settings

logger = logging.getLogger(__name__)


class TemplateLoadError(RuntimeError):
    pass


class PageRenderer:
    """Renders the book listing page.

    The template is compiled once, here, so a missing or broken template
    stops the application from starting instead of failing requests.
    Without `template_dir` the template shipped in this package is used.
    """

    def __init__(self, template_dir: Optional[str] = None, template_name: Optional[str] = None) -> None:
        template_dir = template_dir or settings.template_dir
        template_name = template_name or settings.template_name
        if template_dir:
            loader = FileSystemLoader(template_dir)
            source = template_dir
        else:
            loader = PackageLoader(__name__, "templates")
            source = f"package {__name__}"
        env = Environment(
            loader=loader,
            autoescape=select_autoescape(["html", "htm"], default_for_string=True, default=True),
        )
        try:
            self.template = env.get_template(template_name)
        except TemplateError as exc:
            raise TemplateLoadError(f"Could not load template {template_name!r} from {source}: {exc}") from exc
        logger.info(f"Loaded page template {template_name}")

    def render(self, books: Iterable[Book]) -> str:
        return self.template.render(books=list(books), app_name=settings.app_name)
