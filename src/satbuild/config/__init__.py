"""Configuration parsing modules for satbuild."""

from .project_config import CONFIG_FILENAME, INSTALL_ROOT_ENV, ProjectConfig, find_config

__all__ = ["CONFIG_FILENAME", "INSTALL_ROOT_ENV", "ProjectConfig", "find_config"]
