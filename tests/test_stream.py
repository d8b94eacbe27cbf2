import socket
import threading
import unittest

from minisocks.core.exceptions import ProtocolError
from minisocks.core.lib.stream import SocketStream, dial, format_address
from . import dummy


class TestFormatAddress(unittest.TestCase):
    def test_inet(self):
        self.assertEqual(format_address(('10.0.0.1', 1080)), '10.0.0.1:1080')

    def test_unnamed(self):
        self.assertEqual(format_address(''), 'unknown')


class TestSocketStream(unittest.TestCase):
    def setUp(self):
        self.stream, self.peer = dummy.make_stream_pair()

    def tearDown(self):
        self.stream.close()
        self.peer.close()

    def test_read_exact_joins_chunks(self):
        def feed():
            self.peer.sendall(b'\x05')
            self.peer.sendall(b'\x01\x00')

        t = threading.Thread(target=feed)
        t.start()
        self.assertEqual(self.stream.read_exact(3), b'\x05\x01\x00')
        t.join()

    def test_read_exact_zero(self):
        self.assertEqual(self.stream.read_exact(0), b'')

    def test_read_exact_short(self):
        self.peer.sendall(b'\x05')
        self.peer.shutdown(socket.SHUT_WR)
        with self.assertRaises(ProtocolError):
            self.stream.read_exact(2)

    def test_write(self):
        self.stream.write(b'\x05\x00')
        self.assertEqual(dummy.recv_exact(self.peer, 2), b'\x05\x00')

    def test_read_eof(self):
        self.peer.shutdown(socket.SHUT_WR)
        self.assertEqual(self.stream.read(), b'')

    def test_close_is_idempotent(self):
        self.stream.close()
        self.stream.close()
        self.assertTrue(self.stream.closed)
        self.assertEqual(self.peer.recv(1), b'')

    def test_write_after_close(self):
        self.stream.close()
        with self.assertRaises(OSError):
            self.stream.write(b'x')

    def test_close_unblocks_reader(self):
        result = []

        def read():
            try:
                result.append(self.stream.read())
            except OSError as exc:
                result.append(exc)

        t = threading.Thread(target=read)
        t.start()
        # give the reader a moment to block in recv()
        t.join(0.1)
        self.stream.close()
        t.join(5)
        self.assertFalse(t.is_alive())

    def test_peer_of_tcp_socket(self):
        listener = socket.socket()
        listener.bind(('127.0.0.1', 0))
        listener.listen(1)
        port = listener.getsockname()[1]
        try:
            stream = dial('127.0.0.1', port)
            conn, _ = listener.accept()
            try:
                self.assertEqual(stream.peer, '127.0.0.1:{}'.format(port))
            finally:
                stream.close()
                conn.close()
        finally:
            listener.close()


class TestDial(unittest.TestCase):
    def test_refused(self):
        listener = socket.socket()
        listener.bind(('127.0.0.1', 0))
        port = listener.getsockname()[1]
        # bound but not listening, so connecting is refused
        try:
            with self.assertRaises(OSError):
                dial('127.0.0.1', port)
        finally:
            listener.close()
