"""Process supervision configuration helpers."""

from .process_compose import ProcessEntry, load_template, render_config, write_config
from .procfile import read_dev_process

__all__ = ["ProcessEntry", "load_template", "read_dev_process", "render_config", "write_config"]
