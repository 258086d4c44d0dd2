"""
Jayce Core

Configuration, loading, resolution and deployment orchestration.
"""

from .address_resolver import AddressResolver, DependencyGraph, ResolutionPlan, resolve_addresses
from .config_loader import ConfigResolver, load_config_file, resolve_config
from .module_loader import ModuleLoader, load_modules
from .orchestrator import DeploymentOrchestrator
from .report_writer import ReportWriter
from .sequence import SequenceCounter

__all__ = [
    "AddressResolver",
    "DependencyGraph",
    "ResolutionPlan",
    "resolve_addresses",
    "ConfigResolver",
    "load_config_file",
    "resolve_config",
    "ModuleLoader",
    "load_modules",
    "DeploymentOrchestrator",
    "ReportWriter",
    "SequenceCounter",
]
