"""Bundle assembly: run the four map builders over one ProjectIndex."""

from __future__ import annotations

import logging
from collections import Counter
from datetime import datetime, timezone
from typing import Any, Dict

from . import config
from .api_map import build_api_map
from .call_graph import build_call_graph
from .class_map import build_class_map
from .models import CodeMapBundle, ProjectIndex
from .module_map import build_module_map

logger = logging.getLogger(__name__)


def build_code_maps(index: ProjectIndex) -> CodeMapBundle:
    """Build a fresh CodeMapBundle; the builders are independent of each other."""
    bundle = CodeMapBundle(
        class_map=build_class_map(index),
        module_map=build_module_map(index),
        call_graph=build_call_graph(index),
        api_map=build_api_map(index),
        generated_at=datetime.now(timezone.utc).isoformat(),
        version=config.CODE_MAPS_VERSION,
    )
    logger.info(
        "Built code maps: %d classes, %d modules, %d functions, %d endpoints",
        len(bundle.class_map.classes),
        len(bundle.module_map.modules),
        len(bundle.call_graph.functions),
        len(bundle.api_map.endpoints),
    )
    return bundle


def summarize_code_maps(bundle: CodeMapBundle) -> Dict[str, Any]:
    class_map, module_map = bundle.class_map, bundle.module_map
    functions, endpoints = bundle.call_graph.functions, bundle.api_map.endpoints
    return {
        "classMap": {
            "classes": len(class_map.classes),
            "interfaces": len(class_map.interfaces),
            "relationships": len(class_map.relationships),
            "topClasses": [
                {"name": c.name, "file": c.file, "methods": len(c.methods), "extends": c.extends}
                for c in class_map.classes[:10]
            ],
        },
        "moduleMap": {
            "modules": len(module_map.modules),
            "connections": len(module_map.connections),
            "layers": [layer.to_dict() for layer in module_map.layers],
        },
        "callGraph": {
            "functions": len(functions),
            "withCalls": sum(1 for f in functions if f.calls),
            "withCalledBy": sum(1 for f in functions if f.called_by),
        },
        "apiMap": {
            "endpoints": len(endpoints),
            "byMethod": dict(Counter(e.method for e in endpoints)),
            "routes": [f"{e.method} {e.path}" for e in endpoints],
        },
    }
