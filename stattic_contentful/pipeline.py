"""
A small build pipeline hosting the Contentful plugin.

Reads a source tree into a FileSet, hands it to each plugin in turn and
writes the result to the destination only when every plugin succeeded.
"""

import logging
import os
import shutil
from datetime import datetime

import yaml

from .errors import ConfigurationError
from .models import FileRecord, FileSet


class InfoFilter(logging.Filter):
    """Filter to allow only build summary messages on the console."""
    def filter(self, record):
        allowed_messages = [
            "Contentful:",
            "Fetched",
            "Build finished",
            "Build failed",
            "Wrote",
        ]
        return record.levelno >= logging.WARNING or any(msg in record.getMessage() for msg in allowed_messages)


def setup_logging(logs_dir=None, level=logging.INFO):
    """
    Install console and file handlers on the package logger.

    Console output is limited to build summaries and warnings, the log file
    under ``logs_dir`` receives everything.
    """
    logger = logging.getLogger('StatticContentful')
    logger.setLevel(logging.DEBUG)

    if not logger.handlers:
        console_handler = logging.StreamHandler()
        console_handler.setLevel(level)
        console_handler.addFilter(InfoFilter())
        console_handler.setFormatter(logging.Formatter('%(message)s'))
        logger.addHandler(console_handler)

        logs_dir = logs_dir or os.path.join(os.getcwd(), 'logs')
        os.makedirs(logs_dir, exist_ok=True)
        log_filename = datetime.now().strftime('stattic_contentful_%Y-%m-%d_%H-%M-%S.log')

        file_handler = logging.FileHandler(os.path.join(logs_dir, log_filename))
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s'))
        logger.addHandler(file_handler)
    return logger


def parse_front_matter(path, raw):
    """Split a source file into its YAML front matter and body."""
    try:
        text = raw.decode('utf-8')
    except UnicodeDecodeError:
        return {}, raw

    if not text.startswith('---'):
        return {}, raw
    parts = text.split('---', 2)
    if len(parts) < 3:
        return {}, raw

    try:
        metadata = yaml.safe_load(parts[1]) or {}
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML front matter in {path}: {e}")
    if not isinstance(metadata, dict):
        raise ConfigurationError(f"Front matter of {path} must be a mapping")

    return metadata, parts[2].lstrip('\r\n').encode('utf-8')


class Pipeline:
    def __init__(self, directory='.', source='src', destination='build', clean=False):
        self.directory = directory
        self.source = source
        self.destination = destination
        self.clean = clean
        self.plugins = []
        self.metadata = {}
        self.logger = logging.getLogger('StatticContentful.Pipeline')

    @property
    def source_path(self):
        return os.path.join(self.directory, self.source)

    @property
    def destination_path(self):
        return os.path.join(self.directory, self.destination)

    def use(self, plugin):
        self.plugins.append(plugin)
        return self

    def read(self):
        """Read every file under the source directory into a FileSet."""
        source = self.source_path
        if not os.path.isdir(source):
            raise ConfigurationError(f"Source directory '{source}' does not exist")

        files = FileSet()
        for root, dirs, names in os.walk(source):
            dirs.sort()
            for name in sorted(names):
                full_path = os.path.join(root, name)
                relative = os.path.relpath(full_path, source).replace(os.sep, '/')
                try:
                    with open(full_path, 'rb') as f:
                        raw = f.read()
                except (IOError, OSError) as e:
                    self.logger.error(f"Failed to read source file {full_path}: {e}")
                    raise
                metadata, contents = parse_front_matter(relative, raw)
                files.add(FileRecord(path=relative, contents=contents, metadata=metadata))

        self.logger.debug(f"Read {len(files)} files from {source}")
        return files

    def run(self, files):
        for plugin in self.plugins:
            plugin(files, self)
        return files

    def process(self):
        """Read the source tree and run all plugins, without writing anything."""
        return self.run(self.read())

    def write(self, files):
        destination = self.destination_path
        if self.clean and os.path.isdir(destination):
            shutil.rmtree(destination)
        os.makedirs(destination, exist_ok=True)

        for record in files:
            output_path = os.path.join(destination, *record.path.split('/'))
            try:
                os.makedirs(os.path.dirname(output_path), exist_ok=True)
                with open(output_path, 'wb') as output_file:
                    output_file.write(record.contents)
            except (IOError, OSError) as e:
                self.logger.error(f"Failed to write {output_path}: {e}")
                raise
        self.logger.info(f"Wrote {len(files)} files to {destination}")

    def build(self, callback=None):
        """
        Run the whole build.

        Args:
            callback: Optional completion callback, called with None on
                success or with the exception that aborted the build

        Returns:
            The written FileSet, or None when the build failed and a callback was given
        """
        try:
            files = self.process()
            self.write(files)
        except Exception as e:
            self.logger.error(f"Build failed: {e}")
            if callback is None:
                raise
            callback(e)
            return None

        self.logger.info("Build finished")
        if callback is not None:
            callback(None)
        return files
