import pytest

import lantop.live_capture as live
from lantop.live_capture import LiveCapture, LiveCaptureError, frame_from_packet


@pytest.fixture
def scapy_layers():
    pytest.importorskip("scapy.all")
    from scapy.all import ARP, Ether, IP, IPv6, UDP, Raw

    return {
        "ARP": ARP,
        "Ether": Ether,
        "IP": IP,
        "IPv6": IPv6,
        "UDP": UDP,
        "Raw": Raw,
    }


class RecordingListener:
    def __init__(self) -> None:
        self.frames = []

    def on_frame(self, frame) -> None:
        self.frames.append(frame)


def test_frame_from_ipv4_packet(scapy_layers):
    packet = (
        scapy_layers["Ether"]()
        / scapy_layers["IP"](src="192.168.1.5", dst="8.8.4.4")
        / scapy_layers["UDP"](sport=5353, dport=53)
        / scapy_layers["Raw"](load=b"hello")
    )
    packet.time = 1.5

    frame = frame_from_packet(packet)
    assert frame is not None
    assert frame.src == bytes([192, 168, 1, 5])
    assert frame.dst == bytes([8, 8, 4, 4])
    assert frame.length == len(packet)
    assert frame.timestamp == 1_500_000


def test_non_ipv4_packets_produce_no_frame(scapy_layers):
    ipv6 = scapy_layers["Ether"]() / scapy_layers["IPv6"](src="2001:db8::1", dst="2001:db8::2")
    arp = scapy_layers["Ether"]() / scapy_layers["ARP"]()

    assert frame_from_packet(ipv6) is None
    assert frame_from_packet(arp) is None


def test_packets_are_forwarded_to_listener(scapy_layers):
    listener = RecordingListener()
    capture = LiveCapture("lo", frame_listener=listener)

    capture._on_packet(scapy_layers["Ether"]() / scapy_layers["IP"](src="10.0.0.1", dst="10.0.0.2"))
    capture._on_packet(scapy_layers["Ether"]() / scapy_layers["ARP"]())

    assert [frame.src_ip for frame in listener.frames] == ["10.0.0.1"]
    assert capture.frames_seen == 1
    assert capture.frames_ignored == 1


class FakeSniffer:
    def __init__(self, **kwargs) -> None:
        self.kwargs = kwargs
        self.started = False
        self.stopped = False

    def start(self) -> None:
        self.started = True

    def stop(self) -> None:
        self.stopped = True


def test_start_stop_lifecycle(monkeypatch):
    created = []

    def factory(**kwargs):
        sniffer = FakeSniffer(**kwargs)
        created.append(sniffer)
        return sniffer

    monkeypatch.setattr(live, "AsyncSniffer", factory)
    statuses = []
    capture = LiveCapture("eth0", bpf_filter="ip", status_handler=statuses.append)

    capture.start()
    assert capture.is_running()
    assert created[0].started
    assert created[0].kwargs["iface"] == "eth0"
    assert created[0].kwargs["filter"] == "ip"
    assert created[0].kwargs["store"] is False
    assert created[0].kwargs["prn"] == capture._on_packet

    with pytest.raises(LiveCaptureError):
        capture.start()

    capture.stop()
    assert created[0].stopped
    assert not capture.is_running()
    assert statuses == ["capturing eth0", "stopped eth0"]

    capture.stop()
    assert statuses == ["capturing eth0", "stopped eth0"]
