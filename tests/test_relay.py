import socket
import unittest

import minisocks.core.lib.socks_handler as socks
from . import dummy


class TestRelay(unittest.TestCase):
    def setUp(self):
        self.client, self.client_peer = dummy.make_stream_pair()
        self.remote, self.remote_peer = dummy.make_stream_pair()

    def tearDown(self):
        self.client.close()
        self.remote.close()
        self.client_peer.close()
        self.remote_peer.close()

    def join(self, threads):
        for t in threads:
            t.join(5)
            self.assertFalse(t.is_alive())

    def test_round_trip(self):
        threads = socks.relay(self.client, self.remote)

        self.client_peer.sendall(b'GET / HTTP/1.0\r\n\r\n')
        self.assertEqual(
                dummy.recv_exact(self.remote_peer, 18), b'GET / HTTP/1.0\r\n\r\n')

        payload = bytes(range(256)) * 64
        self.remote_peer.sendall(payload)
        self.assertEqual(dummy.recv_exact(self.client_peer, len(payload)), payload)

        self.client_peer.sendall(b'more')
        self.assertEqual(dummy.recv_exact(self.remote_peer, 4), b'more')

        # client hangs up, the whole relay follows
        self.client_peer.shutdown(socket.SHUT_WR)
        self.join(threads)
        self.assertTrue(self.client.closed)
        self.assertTrue(self.remote.closed)
        self.assertEqual(self.remote_peer.recv(1), b'')
        self.assertEqual(self.client_peer.recv(1), b'')

    def test_remote_eof(self):
        threads = socks.relay(self.client, self.remote)
        self.remote_peer.sendall(b'bye')
        self.remote_peer.close()
        self.assertEqual(dummy.recv_exact(self.client_peer, 3), b'bye')
        self.join(threads)
        self.assertTrue(self.client.closed)
        self.assertTrue(self.remote.closed)

    def test_close_client_stream(self):
        threads = socks.relay(self.client, self.remote)
        self.client.close()
        self.join(threads)
        self.assertTrue(self.remote.closed)

    def test_close_remote_stream(self):
        threads = socks.relay(self.client, self.remote)
        self.remote.close()
        self.join(threads)
        self.assertTrue(self.client.closed)

    def test_returns_without_waiting(self):
        threads = socks.relay(self.client, self.remote)
        self.assertTrue(all(t.is_alive() for t in threads))
        self.assertTrue(all(t.daemon for t in threads))
        self.client.close()
        self.join(threads)
