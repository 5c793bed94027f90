"""
EGData Client - background agent that collects installed game manifests.
"""
__version__ = "0.1.0"
