import sys
import draccus
from pathlib import Path
from tqdm import tqdm

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt

root_dir = Path(__file__).resolve().parent.parent
sys.path.append(str(root_dir))

from configs.config import RenderConfig
from dicomview.core.errors import DicomError
from dicomview.core.normalizer import PixelNormalizer
from dicomview.decoding.pydicom_reader import PydicomDecoder
from dicomview.session import ViewerSession
from dicomview.utils.image_operations import save_display_buffer
from dicomview.utils.logger import ViewerLogger
from dicomview.utils.visualization import plot_window_histogram


def collect_inputs(inputs: list[str]) -> list[Path]:
    """Expands directories into their .dcm files; plain paths are kept as given."""
    paths = []
    for entry in inputs:
        path = Path(entry)
        if path.is_dir():
            paths.extend(sorted(p for p in path.rglob("*") if p.suffix.lower() in (".dcm", ".dicom")))
        else:
            paths.append(path)
    return paths


def main() -> None:
    """Renders every input DICOM file to PNG.

    The window is chosen per file: an explicit --window override, else a fresh
    histogram estimate when --auto_window is set, else the window stored in
    the file (or estimated on load when the file has none).
    """
    cfg = draccus.parse(config_class=RenderConfig)

    logger = ViewerLogger(
        log_dir=cfg.run_dir if cfg.logs.to_file else None,
        name=cfg.logs.name,
        level=cfg.logs.level,
    )
    logger.info(f"📂 Run Directory: {cfg.run_dir}")

    normalizer = PixelNormalizer(auto_window=cfg.estimator, logger=logger)
    session = ViewerSession(
        reader=PydicomDecoder(normalizer=normalizer, logger=logger),
        auto_window=cfg.estimator,
        logger=logger,
    )

    paths = collect_inputs(cfg.inputs)
    if not paths:
        logger.warning("⚠️ No input files given. Use --inputs '[a.dcm, dir/]'.")
        return

    rendered = 0
    for path in tqdm(paths, desc="Rendering", dynamic_ncols=True):
        try:
            session.load(path)
        except DicomError as e:
            logger.error(f"❌ {path.name}: {e.full_message()}")
            continue

        if cfg.window.is_set:
            session.set_window(cfg.window.center, cfg.window.width)
        elif cfg.auto_window:
            session.auto_window()

        buffer = session.render_rgb() if cfg.rgb else session.render()
        out_path = save_display_buffer(buffer, cfg.run_dir / f"{path.stem}.png")
        logger.debug(f"Saved {out_path} (WC={session.window.center}, WW={session.window.width})")

        if cfg.save_histogram and session.image.is_grayscale:
            fig = plot_window_histogram(session.image)
            fig.savefig(cfg.run_dir / f"{path.stem}_histogram.png")
            plt.close(fig)

        rendered += 1

    logger.info(f"✅ Rendered {rendered}/{len(paths)} files into {cfg.run_dir.absolute()}")
    logger.close()


if __name__ == "__main__":
    main()
