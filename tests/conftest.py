from pathlib import Path

import matplotlib
import numpy as np
import pytest
from pydicom.dataset import FileDataset, FileMetaDataset
from pydicom.uid import ExplicitVRLittleEndian, SecondaryCaptureImageStorage, generate_uid

matplotlib.use("Agg")


def write_dicom(path: Path, pixels: np.ndarray | None, photometric: str = "MONOCHROME2",
                bits_stored: int | None = None, signed: bool = False, rows: int | None = None,
                columns: int | None = None, frames: int = 1, **tags) -> Path:
    """Writes a minimal uncompressed DICOM file.

    ``pixels`` is (rows, cols) for grayscale, (rows, cols, 3) for RGB or
    (frames, rows, cols) when ``frames > 1``. Passing None omits PixelData.
    Extra keyword arguments become DICOM attributes by keyword.
    """
    fm = FileMetaDataset()
    fm.TransferSyntaxUID = ExplicitVRLittleEndian
    fm.MediaStorageSOPClassUID = SecondaryCaptureImageStorage
    fm.MediaStorageSOPInstanceUID = generate_uid()

    ds = FileDataset(path.name, {}, file_meta=fm, preamble=b"\0" * 128)
    ds.SOPClassUID = fm.MediaStorageSOPClassUID
    ds.SOPInstanceUID = fm.MediaStorageSOPInstanceUID
    ds.PhotometricInterpretation = photometric

    is_rgb = photometric == "RGB"
    dtype = pixels.dtype if pixels is not None else np.dtype(np.uint16)
    shape = pixels.shape if pixels is not None else (rows or 4, columns or 4)
    spatial = shape[1:3] if frames > 1 else shape[:2]

    ds.Rows = rows if rows is not None else spatial[0]
    ds.Columns = columns if columns is not None else spatial[1]
    ds.SamplesPerPixel = 3 if is_rgb else 1
    if is_rgb:
        ds.PlanarConfiguration = 0
    if frames > 1:
        ds.NumberOfFrames = frames
    ds.BitsAllocated = dtype.itemsize * 8
    ds.BitsStored = bits_stored if bits_stored is not None else ds.BitsAllocated
    ds.HighBit = ds.BitsStored - 1
    ds.PixelRepresentation = 1 if signed else 0

    for keyword, value in tags.items():
        setattr(ds, keyword, value)

    if pixels is not None:
        ds.PixelData = np.ascontiguousarray(pixels).tobytes()

    ds.save_as(path, enforce_file_format=True)
    return path


@pytest.fixture
def dicom_dir(tmp_path: Path) -> Path:
    out = tmp_path / "dicom"
    out.mkdir()
    return out


@pytest.fixture
def ct_file(dicom_dir: Path) -> Path:
    """A 16x8 CT slice: 12-bit unsigned storage, HU via intercept -1024, soft tissue window."""
    stored = np.linspace(0, 4095, 16 * 8).round().astype(np.uint16).reshape(8, 16)
    return write_dicom(
        dicom_dir / "ct.dcm", stored, bits_stored=12,
        RescaleSlope="1", RescaleIntercept="-1024", WindowCenter="40", WindowWidth="400",
        Modality="CT", PatientName="Doe^Jane", PatientID="P-0001", StudyDescription="Chest",
        SeriesNumber="3", SliceThickness="2.5", PixelSpacing=["0.5", "0.5"],
    )
