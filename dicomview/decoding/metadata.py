from dataclasses import dataclass, fields


@dataclass
class DicomMetadata:
    """Descriptive fields of a DICOM file, each optional."""
    # Patient Information
    patient_name: str | None = None
    patient_id: str | None = None
    patient_birth_date: str | None = None
    patient_sex: str | None = None
    patient_age: str | None = None

    # Study Information
    study_date: str | None = None
    study_time: str | None = None
    study_description: str | None = None
    study_instance_uid: str | None = None
    accession_number: str | None = None

    # Series Information
    series_date: str | None = None
    series_time: str | None = None
    series_description: str | None = None
    series_instance_uid: str | None = None
    series_number: str | None = None
    modality: str | None = None

    # Image Information
    instance_number: str | None = None
    image_type: str | None = None
    sop_class_uid: str | None = None
    sop_instance_uid: str | None = None

    # Equipment Information
    manufacturer: str | None = None
    manufacturer_model_name: str | None = None
    station_name: str | None = None
    institution_name: str | None = None

    # Image Characteristics
    rows: int | None = None
    columns: int | None = None
    bits_allocated: int | None = None
    bits_stored: int | None = None
    high_bit: int | None = None
    samples_per_pixel: int | None = None
    photometric_interpretation: str | None = None
    pixel_spacing: str | None = None
    slice_thickness: float | None = None

    # Window/Level
    window_center: int | None = None
    window_width: int | None = None
    window_explanation: str | None = None

    transfer_syntax_uid: str | None = None

    def is_empty(self) -> bool:
        return all(getattr(self, f.name) is None for f in fields(self))

    def to_string(self) -> str:
        """Formats the populated fields as a sectioned, human-readable report."""
        lines = ["=== DICOM Metadata ==="]

        def section(title: str, entries: list[tuple[str, object]], suffix: dict[str, str] | None = None):
            lines.append("")
            lines.append(f"[{title}]")
            for label, value in entries:
                if value is not None:
                    unit = (suffix or {}).get(label, "")
                    lines.append(f"  {label}: {value}{unit}")

        if self.patient_name or self.patient_id or self.patient_birth_date or self.patient_sex:
            section("Patient Information", [
                ("Name", self.patient_name),
                ("ID", self.patient_id),
                ("Birth Date", self.patient_birth_date),
                ("Sex", self.patient_sex),
                ("Age", self.patient_age),
            ])

        if self.study_date or self.study_description or self.accession_number:
            section("Study Information", [
                ("Date", self.study_date),
                ("Time", self.study_time),
                ("Description", self.study_description),
                ("Accession Number", self.accession_number),
                ("Study UID", self.study_instance_uid),
            ])

        if self.modality or self.series_description or self.series_number:
            section("Series Information", [
                ("Modality", self.modality),
                ("Series Number", self.series_number),
                ("Description", self.series_description),
                ("Date", self.series_date),
                ("Series UID", self.series_instance_uid),
            ])

        if self.manufacturer or self.manufacturer_model_name or self.institution_name:
            section("Equipment Information", [
                ("Manufacturer", self.manufacturer),
                ("Model", self.manufacturer_model_name),
                ("Station", self.station_name),
                ("Institution", self.institution_name),
            ])

        if self.rows or self.columns or self.bits_allocated:
            dimensions = f"{self.columns} x {self.rows}" if self.rows and self.columns else None
            section("Image Characteristics", [
                ("Dimensions", dimensions),
                ("Samples Per Pixel", self.samples_per_pixel),
                ("Bits Allocated", self.bits_allocated),
                ("Bits Stored", self.bits_stored),
                ("Photometric", self.photometric_interpretation),
                ("Pixel Spacing", self.pixel_spacing),
                ("Slice Thickness", self.slice_thickness),
            ], suffix={"Slice Thickness": " mm"})

        if self.window_center is not None or self.window_width is not None:
            section("Window/Level", [
                ("Window Center", self.window_center),
                ("Window Width", self.window_width),
                ("Explanation", self.window_explanation),
            ])

        return "\n".join(lines) + "\n"
