import sys
import draccus
from pathlib import Path

root_dir = Path(__file__).resolve().parent.parent
sys.path.append(str(root_dir))

from configs.config import InspectConfig
from dicomview.core.errors import DicomError
from dicomview.decoding.pydicom_reader import PydicomDecoder
from dicomview.utils.logger import ViewerLogger


def main() -> None:
    cfg = draccus.parse(config_class=InspectConfig)
    logger = ViewerLogger(name=cfg.logs.name, level=cfg.logs.level)
    decoder = PydicomDecoder(logger=logger)

    for entry in cfg.inputs:
        try:
            metadata = decoder.load_metadata(entry)
        except DicomError as e:
            logger.error(e.user_message())
            continue
        print(f"# {entry}")
        print(metadata.to_string())


if __name__ == "__main__":
    main()
