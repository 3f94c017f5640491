"""Application services package."""
from .routing_pipeline import PortPointRoutingPipeline

__all__ = ['PortPointRoutingPipeline']
