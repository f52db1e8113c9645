from __future__ import annotations

import socket

import dpkt
import pytest

from lantop.packet_reader import DLT_RAW, PacketReader


def _ipv4(src: str, dst: str, payload: bytes) -> dpkt.ip.IP:
    udp = dpkt.udp.UDP(sport=4000, dport=53)
    udp.data = payload
    udp.ulen = 8 + len(payload)

    ip = dpkt.ip.IP(
        src=socket.inet_aton(src),
        dst=socket.inet_aton(dst),
        p=dpkt.ip.IP_PROTO_UDP,
        ttl=64,
    )
    ip.data = udp
    return ip


def _ethernet_ipv4(src: str, dst: str, payload: bytes) -> bytes:
    ethernet = dpkt.ethernet.Ethernet(
        src=b"\xaa\xaa\xaa\xaa\xaa\xaa",
        dst=b"\xbb\xbb\xbb\xbb\xbb\xbb",
        type=dpkt.ethernet.ETH_TYPE_IP,
        data=_ipv4(src, dst, payload),
    )
    return bytes(ethernet)


def _ethernet_ipv6() -> bytes:
    udp = dpkt.udp.UDP(sport=53, dport=4444)
    udp.data = b"payload"
    udp.pack()

    ip6 = dpkt.ip6.IP6(
        src=socket.inet_pton(socket.AF_INET6, "2001:db8::1"),
        dst=socket.inet_pton(socket.AF_INET6, "2001:db8::2"),
        nxt=dpkt.ip.IP_PROTO_UDP,
        hlim=64,
    )
    ip6.data = udp

    ethernet6 = dpkt.ethernet.Ethernet(
        src=b"\xcc\xcc\xcc\xcc\xcc\xcc",
        dst=b"\xdd\xdd\xdd\xdd\xdd\xdd",
        type=dpkt.ethernet.ETH_TYPE_IP6,
        data=ip6,
    )
    return bytes(ethernet6)


def _build_sample_pcap(path) -> list:
    frames = [
        _ethernet_ipv4("192.168.1.10", "1.1.1.1", b"hello"),
        _ethernet_ipv4("1.1.1.1", "192.168.1.10", b"a longer response payload"),
    ]
    with path.open("wb") as fh:
        writer = dpkt.pcap.Writer(fh)
        writer.writepkt(frames[0], ts=1.0)
        writer.writepkt(_ethernet_ipv6(), ts=1.5)
        writer.writepkt(frames[1], ts=2.5)
    return frames


def test_packet_reader_yields_ipv4_frames_only(tmp_path):
    pcap_path = tmp_path / "sample.pcap"
    raw = _build_sample_pcap(pcap_path)

    with PacketReader(pcap_path) as reader:
        frames = list(reader)
        assert reader.frames_read == 2
        assert reader.skipped_frames == 1

    first, second = frames
    assert first.src_ip == "192.168.1.10"
    assert first.dst_ip == "1.1.1.1"
    assert first.length == len(raw[0])
    assert first.timestamp == 1_000_000
    assert second.src == socket.inet_aton("1.1.1.1")
    assert second.length == len(raw[1])

    assert reader.first_timestamp == 1_000_000
    assert reader.last_timestamp == 2_500_000


def test_raw_ip_linktype(tmp_path):
    pcap_path = tmp_path / "raw.pcap"
    packet = bytes(_ipv4("10.1.2.3", "10.1.2.4", b"raw"))
    with pcap_path.open("wb") as fh:
        dpkt.pcap.Writer(fh, linktype=DLT_RAW).writepkt(packet, ts=3.0)

    with PacketReader(pcap_path) as reader:
        frames = list(reader)

    assert len(frames) == 1
    assert frames[0].dst_ip == "10.1.2.4"
    assert frames[0].length == len(packet)


def test_pcapng_capture(tmp_path):
    pcap_path = tmp_path / "sample.pcapng"
    frame = _ethernet_ipv4("192.168.1.10", "8.8.8.8", b"query")
    with pcap_path.open("wb") as fh:
        writer = dpkt.pcapng.Writer(fh)
        writer.writepkt(frame, ts=5.0)

    with PacketReader(pcap_path) as reader:
        frames = list(reader)

    assert [f.dst_ip for f in frames] == ["8.8.8.8"]
    assert frames[0].timestamp == 5_000_000


def test_unsupported_linktype_is_rejected(tmp_path):
    pcap_path = tmp_path / "wifi.pcap"
    with pcap_path.open("wb") as fh:
        dpkt.pcap.Writer(fh, linktype=105).writepkt(b"\x00" * 24, ts=1.0)

    with pytest.raises(RuntimeError, match="Unsupported link type 105"):
        with PacketReader(pcap_path):
            pass


def test_missing_file_is_reported(tmp_path):
    with pytest.raises(FileNotFoundError):
        PacketReader(tmp_path / "absent.pcap")


def test_garbage_file_fails_to_open(tmp_path):
    path = tmp_path / "garbage.pcap"
    path.write_bytes(b"not a pcap at all, definitely not")
    reader = PacketReader(path)
    with pytest.raises(RuntimeError):
        list(reader)


def _write_truncated_pcapng(path) -> None:
    with path.open("wb") as fh:
        writer = dpkt.pcapng.Writer(fh)
        writer.writepkt(_ethernet_ipv4("192.168.1.10", "8.8.8.8", b"first"), ts=1.0)
        writer.writepkt(_ethernet_ipv4("8.8.8.8", "192.168.1.10", b"second reply"), ts=2.0)
    data = path.read_bytes()
    path.write_bytes(data[:-30])


def test_truncated_pcapng_stops_at_last_complete_block(tmp_path):
    pcap_path = tmp_path / "cut.pcapng"
    _write_truncated_pcapng(pcap_path)

    with PacketReader(pcap_path) as reader:
        frames = list(reader)

    assert [f.dst_ip for f in frames] == ["8.8.8.8"]
    assert reader.truncated
    assert reader.frames_read == 1
    assert reader.last_timestamp == 1_000_000


def test_complete_capture_is_not_flagged_truncated(tmp_path):
    pcap_path = tmp_path / "sample.pcap"
    _build_sample_pcap(pcap_path)

    with PacketReader(pcap_path) as reader:
        list(reader)

    assert not reader.truncated
