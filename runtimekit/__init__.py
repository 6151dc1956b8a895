"""
RuntimeKit - on-demand language runtime provisioning for tool execution.

Downloads pinned toolchains into a content-addressed cache, verifies them
against embedded digests, and builds tools from source with them.
"""

__version__ = "0.1.0"
