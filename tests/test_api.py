"""Tests for the atlast FastAPI endpoints."""

import base64

import numpy as np
from fastapi.testclient import TestClient

from atlast.main import app
from atlast.storage import decode_rgba, encode_png

from conftest import literal_atlas, make_atlas

client = TestClient(app)


def _upload(buf: np.ndarray, content_type: str = "image/png"):
    return {"file": ("atlas.png", encode_png(buf), content_type)}


class TestHealthEndpoint:
    def test_health_returns_200(self):
        resp = client.get("/health")
        assert resp.status_code == 200
        data = resp.json()
        assert data["status"] == "healthy"
        assert data["service"] == "atlast"

    def test_health_includes_version(self):
        resp = client.get("/health")
        assert "version" in resp.json()


class TestDecomposeEndpoint:
    def test_literal_atlas(self):
        resp = client.post("/decompose", files=_upload(literal_atlas()))
        assert resp.status_code == 200
        data = resp.json()
        assert data["glyph_count"] == 1
        assert data["row_count"] == 1

        glyph = data["rows"][0][0]
        assert glyph["identifier"] == "000"
        assert glyph["descent"] == 2
        assert (glyph["width"], glyph["height"]) == (8, 4)
        image = decode_rgba(base64.b64decode(glyph["png_base64"]))
        assert image.shape == (4, 8, 4)

    def test_grid(self, grid_atlas):
        resp = client.post("/decompose", files=_upload(grid_atlas))
        data = resp.json()
        assert data["glyph_count"] == 9
        assert [len(row) for row in data["rows"]] == [3, 2, 4]
        assert [g["identifier"] for row in data["rows"] for g in row] == [
            f"{i:03d}" for i in range(9)
        ]

    def test_rejects_invalid_type(self):
        resp = client.post("/decompose", files={"file": ("data.txt", b"not an image", "text/plain")})
        assert resp.status_code == 422

    def test_rejects_undecodable_image(self):
        resp = client.post("/decompose", files={"file": ("a.png", b"not an image", "image/png")})
        assert resp.status_code == 422

    def test_manifest(self, grid_atlas):
        resp = client.post("/decompose/manifest", files=_upload(grid_atlas))
        assert resp.status_code == 200
        assert "text/html" in resp.headers["content-type"]
        assert resp.text.count("data-atlas=row") == 3
        assert "<img src='000.png' data-descent=2>" in resp.text


class TestComposeEndpoint:
    def test_roundtrip(self, grid_atlas):
        decomposed = client.post("/decompose", files=_upload(grid_atlas)).json()
        rows = [
            [
                {"identifier": g["identifier"], "descent": g["descent"], "png_base64": g["png_base64"]}
                for g in row
            ]
            for row in decomposed["rows"]
        ]

        resp = client.post("/compose", json={"rows": rows})

        assert resp.status_code == 200
        assert resp.headers["content-type"] == "image/png"
        assert np.array_equal(decode_rgba(resp.content), grid_atlas)

    def test_explicit_size(self):
        glyph = encode_png(make_atlas([[(2, 2, 0)]])[:2, :2])
        resp = client.post(
            "/compose",
            json={
                "rows": [[{"identifier": "a", "png_base64": base64.b64encode(glyph).decode()}]],
                "width": 16,
                "height": 8,
            },
        )
        assert resp.status_code == 200
        assert decode_rgba(resp.content).shape == (8, 16, 4)

    def test_empty_returns_422(self):
        resp = client.post("/compose", json={"rows": []})
        assert resp.status_code == 422

    def test_bad_base64_returns_422(self):
        resp = client.post(
            "/compose",
            json={"rows": [[{"identifier": "a", "png_base64": "***"}]]},
        )
        assert resp.status_code == 422

    def test_non_image_returns_422(self):
        resp = client.post(
            "/compose",
            json={"rows": [[{"identifier": "a", "png_base64": base64.b64encode(b"nope").decode()}]]},
        )
        assert resp.status_code == 422

    def test_negative_descent_returns_422(self):
        glyph = base64.b64encode(encode_png(literal_atlas())).decode()
        resp = client.post(
            "/compose",
            json={"rows": [[{"identifier": "a", "descent": -1, "png_base64": glyph}]]},
        )
        assert resp.status_code == 422
