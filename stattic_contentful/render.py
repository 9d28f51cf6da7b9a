"""
Markdown and layout plugins for the pipeline.
"""

import logging
import posixpath

import mistune
from jinja2 import Environment, FileSystemLoader, TemplateError, TemplateNotFound, TemplateSyntaxError

from .errors import RenderError
from .models import FileRecord


def create_markdown_parser():
    """Create a Mistune markdown parser with a custom renderer."""
    class CustomRenderer(mistune.HTMLRenderer):
        def __init__(self):
            super().__init__(escape=False)
        def block_code(self, code, info=None):
            escaped_code = mistune.escape(code)
            return '<pre style="white-space: pre-wrap;"><code>{}</code></pre>'.format(escaped_code)
    return mistune.create_markdown(
        renderer=CustomRenderer(),
        plugins=['table', 'task_lists', 'strikethrough']
    )


class MarkdownPlugin:
    """Convert ``.md`` files to ``.html``."""

    def __init__(self):
        self.markdown_parser = create_markdown_parser()
        self.logger = logging.getLogger('StatticContentful.Markdown')

    def __call__(self, files, pipeline=None):
        converted = 0
        for record in files:
            if record.extension != 'md':
                continue
            html = self.markdown_parser(record.text())
            files.remove(record.path)
            files.add(FileRecord(
                path=posixpath.splitext(record.path)[0] + '.html',
                contents=html.encode('utf-8'),
                metadata=record.metadata,
            ))
            converted += 1
        self.logger.debug(f"Converted {converted} markdown files")


class LayoutsPlugin:
    """Render every file that names a ``layout`` with Jinja2."""

    def __init__(self, directory='templates', default_layout=None):
        self.directory = directory
        self.default_layout = default_layout
        self.env = Environment(loader=FileSystemLoader(directory))
        self.logger = logging.getLogger('StatticContentful.Layouts')

    def template_name(self, layout):
        if not posixpath.splitext(layout)[1]:
            return f"{layout}.html"
        return layout

    def render(self, record):
        layout = record.metadata.get('layout') or self.default_layout
        if not layout:
            return False

        try:
            contents = record.text()
        except UnicodeDecodeError as e:
            raise RenderError(f"Cannot apply layout '{layout}' to binary file {record.path}: {e}")

        context = dict(record.metadata)
        context['contents'] = contents
        context['path'] = record.path
        try:
            template = self.env.get_template(self.template_name(layout))
            rendered = template.render(**context)
        except (TemplateNotFound, TemplateSyntaxError) as e:
            raise RenderError(f"Template error for {record.path}: {e}")
        except TemplateError as e:
            raise RenderError(f"Failed to render {record.path} with '{layout}': {e}")

        record.contents = rendered.encode('utf-8')
        return True

    def __call__(self, files, pipeline=None):
        rendered = sum(1 for record in files if self.render(record))
        self.logger.debug(f"Rendered {rendered} files with layouts from {self.directory}")


def markdown():
    return MarkdownPlugin()


def layouts(directory='templates', default_layout=None):
    return LayoutsPlugin(directory, default_layout)
