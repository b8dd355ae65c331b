"""
Data models for HLSKit.

Defines the decoded playlist documents (master and media), the records
nested inside them, and the download configuration.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import ClassVar, Dict, List, Optional, Tuple, Union


class DocumentKind(str, Enum):
    """Which of the two playlist shapes a document is."""
    MASTER = "master"
    MEDIA = "media"


class VariantKind(str, Enum):
    STREAM = "stream"
    IFRAME = "iframe"


class KeyMethod(str, Enum):
    NONE = "NONE"
    AES_128 = "AES-128"
    SAMPLE_AES = "SAMPLE-AES"


class PlaylistType(str, Enum):
    VOD = "VOD"
    EVENT = "EVENT"


class RenditionType(str, Enum):
    AUDIO = "AUDIO"
    VIDEO = "VIDEO"
    SUBTITLES = "SUBTITLES"
    CLOSED_CAPTIONS = "CLOSED-CAPTIONS"


@dataclass
class ByteRange:
    """A sub-range of a resource: `length` bytes starting at `offset`."""
    length: int
    offset: Optional[int] = None

    @property
    def end(self) -> int:
        return (self.offset or 0) + self.length


@dataclass
class Resolution:
    width: int
    height: int

    def __str__(self) -> str:
        return f"{self.width}x{self.height}"


@dataclass
class InitMap:
    """Media initialization section (EXT-X-MAP)."""
    uri: str = ""
    byte_range: Optional[ByteRange] = None


@dataclass
class Key:
    """
    Decryption descriptor (EXT-X-KEY / EXT-X-SESSION-KEY).

    `value` holds the raw key bytes once the key resolver has loaded them.
    It is written once, before acquisition starts, and only read afterwards.
    """
    method: KeyMethod = KeyMethod.NONE
    uri: Optional[str] = None
    iv: Optional[bytes] = None
    key_format: Optional[str] = None
    key_format_versions: Optional[str] = None
    value: Optional[bytes] = field(default=None, compare=False, repr=False)


@dataclass
class Chunk:
    """One media segment of a media document."""
    uri: str
    duration: float
    title: Optional[str] = None
    byte_range: Optional[ByteRange] = None
    discontinuity: bool = False
    init_map: Optional[InitMap] = None
    program_date_time: Optional[str] = None
    key_index: int = -1  # -1: no key active


@dataclass
class Variant:
    """A playable rendition listed by EXT-X-STREAM-INF."""
    kind: ClassVar[VariantKind] = VariantKind.STREAM

    uri: str = ""
    bandwidth: Optional[int] = None
    average_bandwidth: Optional[int] = None
    codecs: Optional[str] = None
    resolution: Optional[Resolution] = None
    frame_rate: Optional[float] = None
    hdcp_level: Optional[str] = None
    audio: Optional[str] = None
    video: Optional[str] = None
    subtitles: Optional[str] = None
    closed_captions: Optional[str] = None
    no_closed_captions: bool = False  # CLOSED-CAPTIONS=NONE
    program_id: Optional[int] = None


@dataclass
class IFrameVariant:
    """An I-frame-only rendition listed by EXT-X-I-FRAME-STREAM-INF."""
    kind: ClassVar[VariantKind] = VariantKind.IFRAME

    uri: str = ""
    bandwidth: Optional[int] = None
    average_bandwidth: Optional[int] = None
    codecs: Optional[str] = None
    resolution: Optional[Resolution] = None
    hdcp_level: Optional[str] = None
    video: Optional[str] = None


@dataclass
class Rendition:
    """An alternate audio, video, subtitle or caption track (EXT-X-MEDIA)."""
    type: Optional[RenditionType] = None
    group_id: str = ""
    name: str = ""
    uri: Optional[str] = None
    language: Optional[str] = None
    assoc_language: Optional[str] = None
    default: bool = False
    autoselect: bool = False
    forced: bool = False
    instream_id: Optional[str] = None
    characteristics: Tuple[str, ...] = ()
    channels: Optional[str] = None


@dataclass
class SessionDatum:
    """Arbitrary session metadata (EXT-X-SESSION-DATA)."""
    data_id: str = ""
    value: Optional[str] = None
    uri: Optional[str] = None
    language: Optional[str] = None


@dataclass
class MasterDocument:
    """A playlist listing variant streams of the same content."""
    kind: ClassVar[DocumentKind] = DocumentKind.MASTER

    variants: List[Variant] = field(default_factory=list)
    iframe_variants: List[IFrameVariant] = field(default_factory=list)
    renditions: List[Rendition] = field(default_factory=list)
    session_data: List[SessionDatum] = field(default_factory=list)
    session_key: Optional[Key] = None
    independent_segments: bool = False
    time_offset: Optional[float] = None
    precise: bool = False
    version: Optional[int] = None

    @property
    def count(self) -> int:
        """Number of playable variants."""
        return len(self.variants)


@dataclass
class MediaDocument:
    """A playlist listing the ordered chunks of one stream."""
    kind: ClassVar[DocumentKind] = DocumentKind.MEDIA

    chunks: List[Chunk] = field(default_factory=list)
    keys: List[Key] = field(default_factory=list)
    target_duration: Optional[int] = None
    media_sequence: int = 0
    discontinuity_sequence: int = 0
    playlist_type: Optional[PlaylistType] = None
    iframes_only: bool = False
    independent_segments: bool = False
    end_list: bool = False
    time_offset: Optional[float] = None
    precise: bool = False
    version: Optional[int] = None

    @property
    def count(self) -> int:
        """Number of chunks."""
        return len(self.chunks)

    @property
    def total_duration(self) -> float:
        return sum(chunk.duration for chunk in self.chunks)

    def key_for(self, chunk: Chunk) -> Optional[Key]:
        """Return the key governing `chunk`, or None when no key is active."""
        if chunk.key_index < 0:
            return None
        return self.keys[chunk.key_index]


Document = Union[MasterDocument, MediaDocument]


@dataclass
class DownloadConfig:
    """Configuration for HLS download operations."""
    source: str
    output: str
    channels: int = 8
    quality: str = "best"
    base_url: Optional[str] = None
    max_retries: Optional[int] = 5  # None: requeue failed chunks forever
    timeout: int = 30
    verify_ssl: bool = True
    headers: Optional[Dict[str, str]] = None
    work_root: Optional[str] = None
    legacy_iv: bool = True
    align_sync_byte: bool = True
    abort_on_progress_error: bool = False
    ffmpeg_path: str = "ffmpeg"
