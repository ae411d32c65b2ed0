"""FlowMiner: behavioral sequence mining and workflow template matching."""

__version__ = "0.1.0"
