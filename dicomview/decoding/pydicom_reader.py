from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path

import numpy as np
import pydicom
from pydicom.dataset import Dataset
from pydicom.errors import InvalidDicomError
from pydicom.multival import MultiValue
from pydicom.pixels import apply_modality_lut

from dicomview.core.errors import DicomError, ErrorKind
from dicomview.core.image import CanonicalImage, PhotometricInterpretation
from dicomview.core.normalizer import PixelNormalizer
from dicomview.decoding.metadata import DicomMetadata
from dicomview.decoding.source import ArraySource
from dicomview.utils.logger import FallbackLogger, ViewerLogger


class ImageReader(ABC):
    """Loads canonical images and their metadata from files."""

    @abstractmethod
    def load_image(self, path: str | Path) -> CanonicalImage:
        pass

    @abstractmethod
    def load_metadata(self, path: str | Path) -> DicomMetadata:
        pass

    def load_complete(self, path: str | Path) -> tuple[CanonicalImage, DicomMetadata]:
        """Loads the image and then its metadata; either failure propagates."""
        image = self.load_image(path)
        metadata = self.load_metadata(path)
        return image, metadata


def native_representation(
    values: np.ndarray,
    bits_stored: int,
    is_signed: bool,
    slope: float = 1.0,
    intercept: float = 0.0,
) -> np.ndarray:
    """Stores rescaled samples in the narrowest integer type for their value range.

    The range is what ``bits_stored`` can encode, passed through the rescale,
    widened by the actual data where the data exceeds it. Non-integral values
    are returned as float64.

    Args:
        values (np.ndarray): Samples after the modality transform.
        bits_stored (int): Bits stored per sample.
        is_signed (bool): Whether stored samples are two's complement.
        slope (float, optional): Rescale slope. Defaults to 1.0.
        intercept (float, optional): Rescale intercept. Defaults to 0.0.

    Returns:
        np.ndarray: The samples as uint8/int8, uint16/int16, uint32/int32 or float64.
    """
    if values.size == 0:
        return values
    if values.dtype.kind == "f" and not np.all(np.mod(values, 1) == 0):
        return values.astype(np.float64)

    if is_signed:
        lo, hi = -(2 ** (bits_stored - 1)), 2 ** (bits_stored - 1) - 1
    else:
        lo, hi = 0, 2 ** bits_stored - 1
    ends = sorted((lo * slope + intercept, hi * slope + intercept))

    min_val = min(ends[0], float(values.min()))
    max_val = max(ends[1], float(values.max()))
    if min_val >= 0:
        candidates = (np.uint8, np.uint16, np.uint32)
    else:
        candidates = (np.int8, np.int16, np.int32)

    for dtype in candidates:
        info = np.iinfo(dtype)
        if info.min <= min_val and max_val <= info.max:
            return values.astype(dtype)
    return values.astype(np.float64)


def _first_value(ds: Dataset, keyword: str, convert):
    """Reads the first value of a numeric, possibly multi-valued element.

    Args:
        ds (Dataset): Parsed dataset.
        keyword (str): DICOM keyword, e.g. 'WindowCenter'.
        convert: Callable applied to the raw value (``float`` or ``int``).

    Returns:
        The converted value, or None when the element is absent or empty.

    Raises:
        DicomError: INVALID_METADATA when the stored text is not a number.
    """
    value = None
    try:
        value = ds.get(keyword)
        if value is None or value == "":
            return None
        if isinstance(value, MultiValue):
            if len(value) == 0:
                return None
            value = value[0]
        return convert(value)
    except (ValueError, TypeError) as e:
        shown = repr(value) if value is not None else str(e)
        raise DicomError(ErrorKind.INVALID_METADATA, "Invalid metadata value", f"{keyword}: {shown}") from e


def _first_float(ds: Dataset, keyword: str) -> float | None:
    return _first_value(ds, keyword, float)


def _first_int(ds: Dataset, keyword: str) -> int | None:
    # IS/DS text such as '40.0' still yields an integer.
    return _first_value(ds, keyword, lambda v: int(float(v)))


def _as_text(value) -> str | None:
    if value is None:
        return None
    if isinstance(value, MultiValue):
        return "\\".join(str(v) for v in value)
    text = str(value)
    return text if text else None


class PydicomDecoder(ImageReader):
    """
    Decoding backend built on pydicom.

    Pixel data is decoded by pydicom (including whichever compressed transfer
    syntaxes its installed handlers support), the modality LUT is applied,
    and the result is handed to ``PixelNormalizer`` as an ``ArraySource``.
    Multi-frame files contribute their first frame.
    """

    def __init__(self, normalizer: PixelNormalizer | None = None, logger: ViewerLogger | None = None):
        self.logger = logger if logger is not None else FallbackLogger()
        self.normalizer = normalizer if normalizer is not None else PixelNormalizer(logger=self.logger)

    def _read(self, path: str | Path, stop_before_pixels: bool = False) -> Dataset:
        path = Path(path)
        if not path.is_file():
            raise DicomError(ErrorKind.FILE_NOT_FOUND, "File not found", str(path))
        try:
            return pydicom.dcmread(path, stop_before_pixels=stop_before_pixels)
        except (InvalidDicomError, EOFError, OSError) as e:
            raise DicomError(ErrorKind.INVALID_FORMAT, "Failed to load DICOM file", str(e)) from e

    def decode(self, path: str | Path) -> ArraySource:
        """Decodes the first frame of a file into a native-space source.

        Args:
            path (str | Path): DICOM file.

        Returns:
            ArraySource: Samples after the modality transform, with the stored window.

        Raises:
            DicomError: On unreadable files, absent pixel data or pixel data
                that cannot be decompressed.
        """
        ds = self._read(path)
        return self.decode_dataset(ds)

    def decode_dataset(self, ds: Dataset) -> ArraySource:
        """Decodes an already parsed dataset. See ``decode``."""
        photometric_str = str(ds.get("PhotometricInterpretation", "") or "")
        photometric = PhotometricInterpretation.parse(photometric_str)
        self.logger.debug(f"Photometric from file: {photometric_str or '<missing>'}")

        if photometric not in (PhotometricInterpretation.RGB,
                               PhotometricInterpretation.MONOCHROME1,
                               PhotometricInterpretation.MONOCHROME2):
            raise DicomError(ErrorKind.UNSUPPORTED_PHOTOMETRIC_INTERPRETATION,
                             "Unsupported photometric interpretation", photometric_str)

        transfer_syntax = getattr(getattr(ds, "file_meta", None), "TransferSyntaxUID", None)
        if transfer_syntax is not None:
            self.logger.debug(f"Transfer Syntax: {transfer_syntax.name}")

        width = int(ds.get("Columns", 0) or 0)
        height = int(ds.get("Rows", 0) or 0)
        if width == 0 or height == 0:
            raise DicomError(ErrorKind.INVALID_IMAGE_DIMENSIONS, "Invalid image dimensions",
                             f"{width}x{height}")

        if "PixelData" not in ds:
            raise DicomError(ErrorKind.MISSING_PIXEL_DATA, "No pixel data found")

        try:
            arr = ds.pixel_array
        except (NotImplementedError, RuntimeError) as e:
            raise DicomError(ErrorKind.UNSUPPORTED_TRANSFER_SYNTAX,
                             "Unable to decode pixel data", str(e)) from e
        except (ValueError, AttributeError) as e:
            raise DicomError(ErrorKind.INVALID_FORMAT, "Corrupt pixel data", str(e)) from e

        bits_allocated = int(ds.get("BitsAllocated", arr.dtype.itemsize * 8))
        bits_stored = int(ds.get("BitsStored", bits_allocated))
        samples_per_pixel = int(ds.get("SamplesPerPixel", 1))
        is_signed = int(ds.get("PixelRepresentation", 0)) == 1
        self.logger.debug(f"Bits allocated: {bits_allocated}, Bits stored: {bits_stored}, "
                          f"Signed: {'yes' if is_signed else 'no'}")

        if photometric == PhotometricInterpretation.RGB:
            frame = arr[0] if arr.ndim == 4 else arr
            return self._rgb_source(frame, width, height, bits_allocated, bits_stored, is_signed)

        frame = arr[0] if arr.ndim == 3 else arr
        slope = _first_float(ds, "RescaleSlope")
        intercept = _first_float(ds, "RescaleIntercept")
        self.logger.debug(f"Rescale Slope: {slope if slope is not None else 1.0}, "
                          f"Intercept: {intercept if intercept is not None else 0.0}")

        values = native_representation(
            np.asarray(apply_modality_lut(frame, ds)),
            bits_stored=bits_stored,
            is_signed=is_signed,
            slope=slope if slope is not None else 1.0,
            intercept=intercept if intercept is not None else 0.0,
        )
        self.logger.debug(f"Internal representation: {values.dtype.name}")

        window = None
        center = _first_float(ds, "WindowCenter")
        win_width = _first_float(ds, "WindowWidth")
        if center is not None and win_width is not None and win_width > 0:
            window = (center, win_width)
            self.logger.debug(f"Window from DICOM tags (original): Center={center}, Width={win_width}")

        return ArraySource(
            values,
            width=width,
            height=height,
            photometric=photometric,
            bits_allocated=bits_allocated,
            bits_stored=bits_stored,
            samples_per_pixel=samples_per_pixel,
            is_signed=is_signed,
            window=window,
        )

    @staticmethod
    def _rgb_source(frame: np.ndarray, width: int, height: int,
                    bits_allocated: int, bits_stored: int, is_signed: bool) -> ArraySource:
        if frame.dtype != np.uint8:
            # Deeper RGB data is brought down to 8 bits per channel like any other rendering.
            frame = ArraySource(frame, width, height).render_8bit()
        return ArraySource(
            np.asarray(frame, dtype=np.uint8),
            width=width,
            height=height,
            photometric=PhotometricInterpretation.RGB,
            bits_allocated=bits_allocated,
            bits_stored=bits_stored,
            samples_per_pixel=3,
            is_signed=is_signed,
        )

    def load_image(self, path: str | Path) -> CanonicalImage:
        """Decodes and normalizes the first frame of a DICOM file."""
        source = self.decode(path)
        image = self.normalizer.normalize(source)
        self.logger.info(f"Loaded {Path(path).name}: {image.width}x{image.height} "
                         f"{'RGB' if image.is_rgb else 'Grayscale'}")
        return image

    def load_metadata(self, path: str | Path) -> DicomMetadata:
        """Extracts descriptive fields without decoding pixel data."""
        ds = self._read(path, stop_before_pixels=True)
        return self.extract_metadata(ds)

    @staticmethod
    def extract_metadata(ds: Dataset) -> DicomMetadata:
        file_meta = getattr(ds, "file_meta", None)
        transfer_syntax = getattr(file_meta, "TransferSyntaxUID", None) if file_meta is not None else None
        return DicomMetadata(
            patient_name=_as_text(ds.get("PatientName")),
            patient_id=_as_text(ds.get("PatientID")),
            patient_birth_date=_as_text(ds.get("PatientBirthDate")),
            patient_sex=_as_text(ds.get("PatientSex")),
            patient_age=_as_text(ds.get("PatientAge")),
            study_date=_as_text(ds.get("StudyDate")),
            study_time=_as_text(ds.get("StudyTime")),
            study_description=_as_text(ds.get("StudyDescription")),
            study_instance_uid=_as_text(ds.get("StudyInstanceUID")),
            accession_number=_as_text(ds.get("AccessionNumber")),
            series_date=_as_text(ds.get("SeriesDate")),
            series_time=_as_text(ds.get("SeriesTime")),
            series_description=_as_text(ds.get("SeriesDescription")),
            series_instance_uid=_as_text(ds.get("SeriesInstanceUID")),
            series_number=_as_text(ds.get("SeriesNumber")),
            modality=_as_text(ds.get("Modality")),
            instance_number=_as_text(ds.get("InstanceNumber")),
            image_type=_as_text(ds.get("ImageType")),
            sop_class_uid=_as_text(ds.get("SOPClassUID")),
            sop_instance_uid=_as_text(ds.get("SOPInstanceUID")),
            manufacturer=_as_text(ds.get("Manufacturer")),
            manufacturer_model_name=_as_text(ds.get("ManufacturerModelName")),
            station_name=_as_text(ds.get("StationName")),
            institution_name=_as_text(ds.get("InstitutionName")),
            rows=_first_int(ds, "Rows"),
            columns=_first_int(ds, "Columns"),
            bits_allocated=_first_int(ds, "BitsAllocated"),
            bits_stored=_first_int(ds, "BitsStored"),
            high_bit=_first_int(ds, "HighBit"),
            samples_per_pixel=_first_int(ds, "SamplesPerPixel"),
            photometric_interpretation=_as_text(ds.get("PhotometricInterpretation")),
            pixel_spacing=_as_text(ds.get("PixelSpacing")),
            slice_thickness=_first_float(ds, "SliceThickness"),
            window_center=_first_int(ds, "WindowCenter"),
            window_width=_first_int(ds, "WindowWidth"),
            window_explanation=_as_text(ds.get("WindowCenterWidthExplanation")),
            transfer_syntax_uid=str(transfer_syntax) if transfer_syntax is not None else None,
        )
