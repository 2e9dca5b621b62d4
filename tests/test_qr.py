import base64

from ezevent.qr import generate_token, render_qr_data_url, render_qr_png


def test_tokens_are_unique_hex():
    tokens = {generate_token() for _ in range(50)}
    assert len(tokens) == 50
    assert all(len(t) == 32 and int(t, 16) >= 0 for t in tokens)


def test_render_png():
    png = render_qr_png("hello")
    assert png.startswith(b"\x89PNG\r\n\x1a\n")


def test_data_url_wraps_png():
    url = render_qr_data_url("abc123")
    prefix = "data:image/png;base64,"
    assert url.startswith(prefix)
    assert base64.b64decode(url[len(prefix):]).startswith(b"\x89PNG")
