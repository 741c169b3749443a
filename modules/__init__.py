"""Nest Processing Modules

This package contains the processing modules of the nest refresher. Each module
implements the ModuleProcessor interface and provides the business logic for
one aspect of nest maintenance.
"""
