from __future__ import annotations

import pytest

from synthlabel.core.annotations import (
    AnnotationClass,
    AnnotationStore,
    export_annotation_document,
    import_annotation_document,
)
from synthlabel.core.errors import AnnotationImportError
from synthlabel.core.scene import MeshObject, Scene


def _scene() -> Scene:
    return Scene(
        [
            MeshObject("car_1", name="Car", position=(1.0, 0.5, 0.0)),
            MeshObject("tree_1", name="Tree", scale=(1.0, 3.0, 1.0)),
            MeshObject("rock_1"),
        ]
    )


def _store() -> AnnotationStore:
    store = AnnotationStore([AnnotationClass("c_car", "car", "#ff0000"), AnnotationClass("c_tree", "tree", "#00ff00")])
    store.set_annotation("car_1", "c_car", {"occluded": False})
    store.set_annotation("tree_1", "c_tree")
    return store


def test_store_class_operations() -> None:
    store = _store()
    with pytest.raises(ValueError):
        store.add_class(AnnotationClass("c_car", "dup"))
    store.add_class(AnnotationClass("c_sign", "sign"))
    assert [c.name for c in store.classes] == ["car", "tree", "sign"]

    updated = store.update_class("c_sign", name="road_sign", id="ignored")
    assert updated.id == "c_sign" and updated.name == "road_sign"
    with pytest.raises(ValueError):
        store.update_class("missing", name="x")


def test_removing_class_drops_its_annotations() -> None:
    store = _store()
    store.remove_class("c_tree")
    assert store.class_for("tree_1") is None
    assert "tree_1" not in store.annotations
    assert store.class_for("car_1").name == "car"


def test_set_annotation_requires_known_class() -> None:
    store = _store()
    with pytest.raises(ValueError):
        store.set_annotation("rock_1", "nope")
    store.remove_annotation("car_1")
    assert len(store) == 1
    store.clear()
    assert len(store) == 0


def test_export_document_shape() -> None:
    doc = export_annotation_document(_scene(), _store())
    assert doc["version"] == "1.0"
    assert [c["id"] for c in doc["classes"]] == ["c_car", "c_tree"]
    car = doc["annotations"]["car_1"]
    assert car["classId"] == "c_car"
    assert car["className"] == "car"
    assert car["objectName"] == "Car"
    assert car["position"] == [1.0, 0.5, 0.0]
    assert car["boundingBox"] == {"min": [0.5, 0.0, -0.5], "max": [1.5, 1.0, 0.5]}
    assert car["attributes"] == {"occluded": False}
    assert doc["metadata"]["objectCount"] == 3
    assert doc["metadata"]["annotatedCount"] == 2
    assert "rock_1" not in doc["annotations"]


def test_export_single_class() -> None:
    doc = export_annotation_document(_scene(), _store(), class_id="c_tree")
    assert list(doc["annotations"]) == ["tree_1"]
    assert doc["metadata"]["className"] == "tree"
    assert [c["name"] for c in doc["classes"]] == ["tree"]
    with pytest.raises(ValueError):
        export_annotation_document(_scene(), _store(), class_id="missing")


def test_import_roundtrip_keeps_assignments() -> None:
    scene = _scene()
    doc = export_annotation_document(scene, _store())
    store = import_annotation_document(doc, scene)
    assert [c.id for c in store.classes] == ["c_car", "c_tree"]
    assert store.class_for("car_1").name == "car"
    assert store.annotations["car_1"].attributes == {"occluded": False}


def test_import_drops_objects_not_in_scene() -> None:
    doc = export_annotation_document(_scene(), _store())
    smaller = Scene([MeshObject("car_1")])
    store = import_annotation_document(doc, smaller)
    assert list(store.annotations) == ["car_1"]


@pytest.mark.parametrize(
    "data",
    [
        [],
        {"classes": [], "annotations": {}},
        {"version": "1.0", "annotations": {}},
        {"version": "1.0", "classes": []},
        {"version": "1.0", "classes": [{"name": "no id"}], "annotations": {}},
        {"version": "1.0", "classes": [], "annotations": {"car_1": {"className": "car"}}},
        {"version": "1.0", "classes": [], "annotations": {"car_1": {"classId": "ghost"}}},
    ],
)
def test_import_rejects_malformed_documents(data) -> None:
    with pytest.raises(AnnotationImportError):
        import_annotation_document(data, _scene())
