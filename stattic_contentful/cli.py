#!/usr/bin/env python3
"""
Command-line interface for building a site from Contentful entries.
"""

import os
import sys
import argparse
import time
from typing import List, Optional

from . import __version__
from .pipeline import Pipeline, setup_logging
from .plugin import ContentfulPlugin
from .render import layouts, markdown
from .settings import ContentfulSettings


def create_pipeline(settings: dict, directory: str = None) -> Pipeline:
    """Assemble the contentful -> markdown -> layouts pipeline from merged settings."""
    pipeline_options, plugin_options = ContentfulSettings.split(settings)
    directory = directory or os.getcwd()

    pipeline = Pipeline(
        directory=directory,
        source=pipeline_options['source'],
        destination=pipeline_options['destination'],
        clean=pipeline_options['clean'],
    )
    pipeline.use(ContentfulPlugin(plugin_options))
    pipeline.use(markdown())
    pipeline.use(layouts(
        os.path.join(directory, pipeline_options['templates']),
        default_layout=pipeline_options['default_layout'],
    ))
    return pipeline


def main(argv: Optional[List[str]] = None) -> None:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(description='Build static pages from Contentful entries')
    parser.add_argument('--source', type=str,
                        help='Source directory (default: src)')
    parser.add_argument('--destination', type=str,
                        help='Destination directory (default: build)')
    parser.add_argument('--templates', type=str,
                        help='Jinja2 templates directory (default: templates)')
    parser.add_argument('--space-id', dest='space_id', type=str,
                        help='Contentful space id')
    parser.add_argument('--access-token', dest='access_token', type=str,
                        help='Contentful Delivery API access token')
    parser.add_argument('--content-type', dest='content_type', type=str,
                        help='Content type to fetch and stage as files')
    parser.add_argument('--entry-key', dest='entry_key', type=str,
                        help='Metadata key holding raw entries')
    parser.add_argument('--entry-extension', dest='entry_extension', type=str,
                        help='Extension of files holding entries in local mode')
    parser.add_argument('--clean', action='store_true', default=None,
                        help='Empty the destination directory before writing')
    parser.add_argument('--init', type=str, choices=['yml', 'yaml', 'json'],
                        help='Create a sample configuration file')
    parser.add_argument('--version', action='version', version=f'%(prog)s {__version__}')

    args = parser.parse_args(argv)
    settings_loader = ContentfulSettings()

    if args.init:
        config_path = settings_loader.create_sample_config(args.init)
        print(f"Created sample configuration file: {config_path}")
        return

    start_time = time.time()
    try:
        settings_loader.load_settings()
        args_dict = {k: v for k, v in vars(args).items() if v is not None and k != 'init'}
        final_settings = settings_loader.merge_with_args(args_dict)

        logger = setup_logging()
        pipeline = create_pipeline(final_settings)
        files = pipeline.build()
        logger.info(f"Build finished in {time.time() - start_time:.3f} seconds, {len(files)} files written.")
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == '__main__':
    main()
