from __future__ import annotations

import numpy as np
from numba import njit

from .device import BatchResult, _check_header80

_K = np.array(
    [
        0x428A2F98, 0x71374491, 0xB5C0FBCF, 0xE9B5DBA5, 0x3956C25B, 0x59F111F1, 0x923F82A4, 0xAB1C5ED5,
        0xD807AA98, 0x12835B01, 0x243185BE, 0x550C7DC3, 0x72BE5D74, 0x80DEB1FE, 0x9BDC06A7, 0xC19BF174,
        0xE49B69C1, 0xEFBE4786, 0x0FC19DC6, 0x240CA1CC, 0x2DE92C6F, 0x4A7484AA, 0x5CB0A9DC, 0x76F988DA,
        0x983E5152, 0xA831C66D, 0xB00327C8, 0xBF597FC7, 0xC6E00BF3, 0xD5A79147, 0x06CA6351, 0x14292967,
        0x27B70A85, 0x2E1B2138, 0x4D2C6DFC, 0x53380D13, 0x650A7354, 0x766A0ABB, 0x81C2C92E, 0x92722C85,
        0xA2BFE8A1, 0xA81A664B, 0xC24B8B70, 0xC76C51A3, 0xD192E819, 0xD6990624, 0xF40E3585, 0x106AA070,
        0x19A4C116, 0x1E376C08, 0x2748774C, 0x34B0BCB5, 0x391C0CB3, 0x4ED8AA4A, 0x5B9CCA4F, 0x682E6FF3,
        0x748F82EE, 0x78A5636F, 0x84C87814, 0x8CC70208, 0x90BEFFFA, 0xA4506CEB, 0xBEF9A3F7, 0xC67178F2,
    ],
    dtype=np.uint32,
)

_H0 = np.array(
    [0x6A09E667, 0xBB67AE85, 0x3C6EF372, 0xA54FF53A, 0x510E527F, 0x9B05688C, 0x1F83D9AB, 0x5BE0CD19],
    dtype=np.uint32,
)

_M32 = 0xFFFFFFFF


@njit(cache=True)
def _rotr(x, n):
    return ((x >> n) | (x << (32 - n))) & _M32


@njit(cache=True)
def _ch(x, y, z):
    return (x & y) ^ ((~x) & z)


@njit(cache=True)
def _maj(x, y, z):
    return (x & y) ^ (x & z) ^ (y & z)


@njit(cache=True)
def _bsig0(x):
    return _rotr(x, 2) ^ _rotr(x, 13) ^ _rotr(x, 22)


@njit(cache=True)
def _bsig1(x):
    return _rotr(x, 6) ^ _rotr(x, 11) ^ _rotr(x, 25)


@njit(cache=True)
def _ssig0(x):
    return _rotr(x, 7) ^ _rotr(x, 18) ^ (x >> 3)


@njit(cache=True)
def _ssig1(x):
    return _rotr(x, 17) ^ _rotr(x, 19) ^ (x >> 10)


@njit(cache=True)
def _compress(state, w):
    """
    One SHA-256 compression over a 64-word schedule whose first 16 words are filled in.
    `state` is updated in place.
    Working values are int64; uint32 array reads are widened with np.int64 first.
    """
    for i in range(16, 64):
        w[i] = (
            np.int64(w[i - 16]) + _ssig0(np.int64(w[i - 15])) + np.int64(w[i - 7]) + _ssig1(np.int64(w[i - 2]))
        ) & _M32

    a = np.int64(state[0])
    b = np.int64(state[1])
    c = np.int64(state[2])
    d = np.int64(state[3])
    e = np.int64(state[4])
    f = np.int64(state[5])
    g = np.int64(state[6])
    h = np.int64(state[7])

    for i in range(64):
        t1 = (h + _bsig1(e) + _ch(e, f, g) + np.int64(_K[i]) + np.int64(w[i])) & _M32
        t2 = (_bsig0(a) + _maj(a, b, c)) & _M32
        h = g
        g = f
        f = e
        e = (d + t1) & _M32
        d = c
        c = b
        b = a
        a = (t1 + t2) & _M32

    state[0] = (np.int64(state[0]) + a) & _M32
    state[1] = (np.int64(state[1]) + b) & _M32
    state[2] = (np.int64(state[2]) + c) & _M32
    state[3] = (np.int64(state[3]) + d) & _M32
    state[4] = (np.int64(state[4]) + e) & _M32
    state[5] = (np.int64(state[5]) + f) & _M32
    state[6] = (np.int64(state[6]) + g) & _M32
    state[7] = (np.int64(state[7]) + h) & _M32


@njit(cache=True)
def _bswap32(x):
    return ((x & 0xFF) << 24) | ((x & 0xFF00) << 8) | ((x >> 8) & 0xFF00) | ((x >> 24) & 0xFF)


@njit(cache=True)
def _scan(words, start_nonce, count, target_words):
    """
    words: the 80-byte header as 20 big-endian u32 words (nonce word ignored).
    target_words: 256-bit target as 8 u32 words, most significant first.

    Returns (winning nonce or -1, best top word seen).
    """
    # midstate over the first 64 bytes
    mid = _H0.copy()
    w = np.zeros(64, dtype=np.uint32)
    for i in range(16):
        w[i] = words[i]
    _compress(mid, w)

    st = np.empty(8, dtype=np.uint32)
    best = _M32 + 1
    nonce = start_nonce & _M32

    for _ in range(count):
        # second block: header words 16..18, nonce, padding, bit length 640
        for i in range(3):
            w[i] = words[16 + i]
        w[3] = _bswap32(nonce)
        w[4] = 0x80000000
        for i in range(5, 15):
            w[i] = 0
        w[15] = 640
        for i in range(8):
            st[i] = mid[i]
        _compress(st, w)

        # hash the 32-byte first digest: one padded block
        for i in range(8):
            w[i] = st[i]
        w[8] = 0x80000000
        for i in range(9, 15):
            w[i] = 0
        w[15] = 256
        for i in range(8):
            st[i] = _H0[i]
        _compress(st, w)

        # little-endian hash integer, most significant word first = byteswapped st[7..0]
        top = _bswap32(np.int64(st[7]))
        if top < best:
            best = top

        below = True
        for i in range(8):
            hw = _bswap32(np.int64(st[7 - i]))
            tw = np.int64(target_words[i])
            if hw < tw:
                break
            if hw > tw:
                below = False
                break
        if below and nonce != 0:
            return nonce, best

        nonce = (nonce + 1) & _M32

    return -1, best


def _header_words(header80: bytes) -> np.ndarray:
    return np.frombuffer(bytes(header80), dtype=">u4").astype(np.uint32)


def _target_words(target: int) -> np.ndarray:
    # targets wider than 256 bits clamp to the maximum
    t = min(int(target), (1 << 256) - 1)
    return np.frombuffer(t.to_bytes(32, "big"), dtype=">u4").astype(np.uint32)


class NumbaScanDevice:
    """
    numba-compiled scanner that reuses the midstate of the first 64 header bytes
    for every nonce in the batch.
    """

    name = "numba"

    def mine_batch(self, header80: bytes, nonce_start: int, target: int, count: int) -> BatchResult:
        _check_header80(header80)
        if count <= 0:
            return BatchResult()

        nonce, best = _scan(
            _header_words(header80),
            int(nonce_start) & 0xFFFFFFFF,
            int(count),
            _target_words(target),
        )
        best_hash = None if best > 0xFFFFFFFF else int(best)
        if nonce < 0:
            return BatchResult(best_hash=best_hash)
        return BatchResult(nonce=int(nonce), best_hash=best_hash)
