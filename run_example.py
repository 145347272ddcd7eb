from pathlib import Path
from PIL import Image
from print_exporter.imaging.archive import ZipArchiver, save_to_directory
from print_exporter.imaging.loader import load_source
from print_exporter.imaging.pipeline import ExportPipeline
from print_exporter.imaging.sizes import targets_for
from print_exporter.models.enums import ExportFormat, LayoutMode, Orientation

tmp = Path('/tmp/poster_test')
tmp.mkdir(parents=True, exist_ok=True)
src = tmp / 'in.png'
Image.new('RGB', (8000, 10000), (128, 128, 128)).save(src)

targets = targets_for(Orientation.PORTRAIT, ["4x5", "2x3"])
targets[1] = targets[1].with_layout(mode=LayoutMode.MAT, mat_percent=8, background="#ffffff")

pipeline = ExportPipeline(ZipArchiver(), save_to_directory(tmp))
result = pipeline.run(load_source(src), targets, [ExportFormat.PNG, ExportFormat.JPEG],
                      progress_cb=lambda p, m: print(p, m))
print('Saved:', result.archive_location, result.artifacts)
