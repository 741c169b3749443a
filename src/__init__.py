"""
Nest Refresher Framework Core Package

This package contains the core infrastructure for the nest refresher, providing
shared components and interfaces (configuration, connections, exceptions and
logging) for the processing modules.
"""

from .interfaces import ModuleProcessor, ProcessingResult, ModuleStatus

__version__ = "1.0.0"
__all__ = ['ModuleProcessor', 'ProcessingResult', 'ModuleStatus']
