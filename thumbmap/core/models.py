"""Data models for thumbnail hash records."""

from dataclasses import dataclass


@dataclass(frozen=True)
class SignatureResult:
    """ThumbHash data calculated from the pixels of a single image."""

    signature_base64: str
    preview_data_url: str
    width: int  # downsampled
    height: int
    original_width: int
    original_height: int


@dataclass
class ImageRecord:
    """One entry of map.json, keyed by ``asset_file_name``."""

    signature_base64: str
    preview_data_url: str
    width: int
    height: int
    original_width: int
    original_height: int
    asset_file_name: str
    asset_full_file_name: str
    asset_full_hash: str
    asset_file_hash: str
    asset_url: str
    asset_url_with_base: str

    def to_dict(self) -> dict:
        return {
            "signatureBase64": self.signature_base64,
            "previewDataUrl": self.preview_data_url,
            "width": self.width,
            "height": self.height,
            "originalWidth": self.original_width,
            "originalHeight": self.original_height,
            "assetFileName": self.asset_file_name,
            "assetFullFileName": self.asset_full_file_name,
            "assetFullHash": self.asset_full_hash,
            "assetFileHash": self.asset_file_hash,
            "assetUrl": self.asset_url,
            "assetUrlWithBase": self.asset_url_with_base,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ImageRecord":
        return cls(
            signature_base64=data["signatureBase64"],
            preview_data_url=data["previewDataUrl"],
            width=data["width"],
            height=data["height"],
            original_width=data["originalWidth"],
            original_height=data["originalHeight"],
            asset_file_name=data["assetFileName"],
            asset_full_file_name=data["assetFullFileName"],
            asset_full_hash=data["assetFullHash"],
            asset_file_hash=data["assetFileHash"],
            asset_url=data["assetUrl"],
            asset_url_with_base=data["assetUrlWithBase"],
        )


# assetFileName -> record
ImageTable = dict[str, ImageRecord]
