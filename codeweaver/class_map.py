"""Class/interface relationship map."""

from __future__ import annotations

from typing import Dict, List, Set

from .models import ClassMap, ClassMember, ClassNode, ClassRelationship, InterfaceNode, ProjectIndex
from .resolver import canonical_type_name, class_identity, interface_identity, type_references


def _visibility(name: str) -> str:
    return "private" if name.startswith("_") else "public"


def build_class_map(index: ProjectIndex) -> ClassMap:
    """Derive class/interface nodes and extends/implements/uses edges.

    Nodes are keyed by name only; when two files declare the same class
    name the first one in index order is kept.  Bases and interfaces that
    are not declared anywhere in the index are dropped.
    """
    class_names: Set[str] = set()
    interface_names: Set[str] = set()
    for record in index.files:
        class_names.update(c.name for c in record.classes)
        interface_names.update(t.name for t in record.types if t.kind == "interface")

    classes: Dict[str, ClassNode] = {}
    interfaces: Dict[str, InterfaceNode] = {}
    relationships: Dict[ClassRelationship, None] = {}

    def relate(from_id: str, to_id: str, kind: str) -> None:
        relationships.setdefault(ClassRelationship(from_id=from_id, to_id=to_id, type=kind), None)

    for record in index.files:
        for cls in record.classes:
            identity = class_identity(cls.name)
            base = canonical_type_name(cls.extends) if cls.extends else None
            if base not in class_names:
                base = None
            implemented = [
                name for name in (canonical_type_name(i) for i in cls.implements or [])
                if name in interface_names
            ]

            if identity.id not in classes:
                classes[identity.id] = ClassNode(
                    id=identity.id,
                    name=cls.name,
                    file=record.path,
                    line=cls.line,
                    exported=cls.exported,
                    extends=base,
                    implements=implemented,
                    methods=[
                        ClassMember(
                            name=m.name,
                            visibility=_visibility(m.name),
                            params=", ".join(m.params),
                            return_type=m.return_type,
                        )
                        for m in cls.methods
                    ],
                    properties=[
                        ClassMember(name=p.name, visibility=_visibility(p.name), type=p.type)
                        for p in cls.properties
                    ],
                    description=cls.description,
                )

            if base:
                relate(identity.id, class_identity(base).id, "extends")
            for name in implemented:
                relate(identity.id, interface_identity(name).id, "implements")

            annotations: List[str] = [m.return_type for m in cls.methods if m.return_type]
            annotations += [p.type for p in cls.properties if p.type]
            for annotation in annotations:
                for token in type_references(annotation):
                    if token == cls.name:
                        continue
                    if token in class_names:
                        relate(identity.id, class_identity(token).id, "uses")
                    elif token in interface_names:
                        relate(identity.id, interface_identity(token).id, "uses")

        for td in record.types:
            if td.kind != "interface":
                continue
            identity = interface_identity(td.name)
            if identity.id in interfaces:
                continue
            interfaces[identity.id] = InterfaceNode(
                id=identity.id,
                name=td.name,
                file=record.path,
                fields=list(td.fields or []),
                description=td.description,
            )

    return ClassMap(
        classes=list(classes.values()),
        interfaces=list(interfaces.values()),
        relationships=list(relationships),
    )
