"""Tests for the file-based vector store."""

import pytest

from kbagent.errors import PersistenceError
from kbagent.knowledge.vectorstore import VectorDocument, VectorStore


def _doc(doc_id: str, embedding: list[float], model: str = "m1", **metadata) -> VectorDocument:
    return VectorDocument(id=doc_id, content=f"content {doc_id}", model=model,
                          embedding=embedding, metadata=metadata)


@pytest.fixture
def vectorstore(tmp_path):
    store = VectorStore(tmp_path / "kb")
    store.add_batch([
        _doc("x", [1.0, 0.0, 0.0], source="a"),
        _doc("y", [0.0, 1.0, 0.0], source="b"),
        _doc("xy", [1.0, 1.0, 0.0], source="a"),
        _doc("z-other-model", [1.0, 0.0, 0.0], model="m2"),
    ])
    return store


def test_search_orders_by_similarity(vectorstore):
    results = vectorstore.search([1.0, 0.1, 0.0], top_k=3)

    assert [r.id for r in results] == ["x", "z-other-model", "xy"]
    assert results[0].score == pytest.approx(results[1].score)
    assert results[0].score > results[2].score


def test_top_k_limits_results(vectorstore):
    assert len(vectorstore.search([1.0, 0.0, 0.0], top_k=2)) == 2
    assert vectorstore.search([1.0, 0.0, 0.0], top_k=0) == []


def test_model_filter(vectorstore):
    results = vectorstore.search([1.0, 0.0, 0.0], top_k=10, model_filter="m1")

    assert "z-other-model" not in [r.id for r in results]
    assert len(results) == 3


def test_metadata_filter(vectorstore):
    results = vectorstore.search([0.0, 1.0, 0.0], top_k=10, filter_metadata={"source": "a"})

    assert [r.id for r in results] == ["xy", "x"]


def test_replace_existing_document(vectorstore):
    vectorstore.add(_doc("x", [0.0, 0.0, 1.0]))

    assert len(vectorstore) == 4
    assert vectorstore.search([0.0, 0.0, 1.0], top_k=1)[0].id == "x"


def test_delete(vectorstore):
    assert vectorstore.delete("y") is True
    assert vectorstore.delete("y") is False
    assert vectorstore.get("y") is None
    assert "y" not in [r.id for r in vectorstore.search([0.0, 1.0, 0.0], top_k=10)]


def test_delete_last_document(tmp_path):
    store = VectorStore(tmp_path / "kb")
    store.add(_doc("only", [1.0, 0.0]))

    store.delete("only")

    assert len(store) == 0
    assert store.search([1.0, 0.0]) == []
    assert len(VectorStore(tmp_path / "kb")) == 0


def test_reload_from_disk(vectorstore, tmp_path):
    reloaded = VectorStore(tmp_path / "kb")

    assert len(reloaded) == 4
    assert [d.id for d in reloaded.all()] == ["x", "y", "xy", "z-other-model"]
    assert reloaded.get("xy").metadata == {"source": "a"}
    assert reloaded.search([0.0, 1.0, 0.0], top_k=1)[0].id == "y"


def test_destroy_removes_directory(vectorstore, tmp_path):
    vectorstore.destroy()

    assert len(vectorstore) == 0
    assert not (tmp_path / "kb").exists()


def test_corrupt_documents_file(tmp_path):
    (tmp_path / "kb").mkdir()
    (tmp_path / "kb" / "documents.json").write_text("[oops")

    with pytest.raises(PersistenceError):
        VectorStore(tmp_path / "kb")


def test_documents_without_embeddings_file(vectorstore, tmp_path):
    (tmp_path / "kb" / "embeddings.npy").unlink()

    with pytest.raises(PersistenceError, match="4 documents but 0 embeddings"):
        VectorStore(tmp_path / "kb")
