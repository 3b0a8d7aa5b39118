"""Label helpers for the Prometheus exposition format"""
from typing import Dict, Optional


def format_labels(labels: Optional[Dict[str, str]]) -> str:
    """Render a label map as a ``{k="v",...}`` block, ``{}`` when empty"""
    if not labels:
        return "{}"
    label_pairs = [f'{k}="{v}"' for k, v in labels.items()]
    return "{" + ",".join(label_pairs) + "}"
