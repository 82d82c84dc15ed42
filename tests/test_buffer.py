import threading

from bazelwatch.buffer import SyncBuffer


def test_write_then_getvalue():
    buf = SyncBuffer()
    assert buf.write(b"hello ") == 6
    buf.write("moto")
    assert buf.getvalue() == b"hello moto"
    assert str(buf) == "hello moto"


def test_getvalue_does_not_consume():
    buf = SyncBuffer()
    buf.write(b"abc")
    assert buf.getvalue() == buf.getvalue()
    assert len(buf) == 3


def test_read_consumes_in_order():
    buf = SyncBuffer()
    buf.write(b"Started!")
    first = buf.read(3)
    rest = buf.read()
    assert first + rest == b"Started!"
    assert len(first) == 3
    assert buf.getvalue() == b""
    assert buf.read(10) == b""


def test_read_more_than_available():
    buf = SyncBuffer()
    buf.write(b"xy")
    assert buf.read(100) == b"xy"
    assert len(buf) == 0


def test_concurrent_writes_keep_every_byte():
    buf = SyncBuffer()
    chunk = b"0123456789"

    def writer():
        for _ in range(200):
            buf.write(chunk)

    threads = [threading.Thread(target=writer) for _ in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    data = buf.getvalue()
    assert len(data) == 8 * 200 * len(chunk)
    assert data.count(chunk) == 8 * 200


def test_text_write_reports_encoded_length():
    buf = SyncBuffer()
    text = "héllo"
    assert buf.write(text) == len(text.encode("utf-8"))
    assert str(buf) == text