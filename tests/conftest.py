# tests/conftest.py
import io

import pytest
from PIL import Image

from app import create_app
from images import validate_image_upload
from models import Base, make_engine, make_session_factory


def image_bytes(fmt="PNG", size=(40, 20), color=(249, 115, 22)):
    buf = io.BytesIO()
    Image.new("RGB", size, color).save(buf, format=fmt)
    return buf.getvalue()


@pytest.fixture
def png_bytes():
    return image_bytes("PNG")


@pytest.fixture
def jpeg_bytes():
    return image_bytes("JPEG")


@pytest.fixture
def logo(png_bytes):
    return validate_image_upload(png_bytes, "image/png")


@pytest.fixture
def signature():
    return validate_image_upload(image_bytes("PNG", size=(120, 30), color=(0, 0, 0)), "image/png")


@pytest.fixture
def session_factory(tmp_path):
    engine = make_engine(f"sqlite:///{(tmp_path / 'drafts.db').as_posix()}")
    Base.metadata.create_all(engine)
    return make_session_factory(engine)


@pytest.fixture
def app(tmp_path):
    return create_app({
        "TESTING": True,
        "SQLALCHEMY_DATABASE_URI": f"sqlite:///{(tmp_path / 'instance' / 'drafts.db').as_posix()}",
        "EXPORTS_DIR": (tmp_path / "exports").as_posix(),
    })


@pytest.fixture
def client(app):
    return app.test_client()


SVG_LOGO = (
    b'<svg xmlns="http://www.w3.org/2000/svg" width="160" height="80" viewBox="0 0 160 80">'
    b'<rect width="160" height="80" fill="#f97316"/>'
    b'<circle cx="40" cy="40" r="30" fill="#1f2937"/>'
    b'</svg>'
)


def noisy_jpeg_bytes(size=(200, 150)):
    # Noise keeps the compressed scan data large, so cutting the file loses pixels.
    buf = io.BytesIO()
    Image.effect_noise(size, 64).convert("RGB").save(buf, format="JPEG", quality=95)
    return buf.getvalue()


@pytest.fixture
def svg_bytes():
    return SVG_LOGO
