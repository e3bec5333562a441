"""
statespine - execution-state inspection for declarative workflows.

Subpackages:
- statespine.core: errors, logging, timestamps, cache, settings
- statespine.orchestration: definition parsing and graph building
- statespine.execution: history decoding and timeline reconstruction
- statespine.logs: task log correlation
- statespine.ops: provider adapters and response assembly
- statespine.cli: command line interface
"""

__version__ = "0.1.0"
