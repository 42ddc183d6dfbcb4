import argparse

import torch

from config import DEFAULT_NUM_WORKERS
from image_io import read_convergence_map, read_source_image
from lensing_system import Lens, Source
from renderer import RenderContext
from shared_utils import RowPartitionedPool
from viewer.screen import Screen


def _positive_int(value):
    n = int(value)
    if n < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1, got {n}")
    return n


def parse_args(argv=None):
    parser = argparse.ArgumentParser(prog="quicklens", description="A fast gravitational lensing visualization tool")
    parser.add_argument("lensfile", help="lens convergence map (*.FITS, *.PNG, *.JPG, ...)")
    parser.add_argument("sourcefile", help="source image (*.PNG, *.JPG, ...)")
    parser.add_argument("n_threads", nargs="?", type=_positive_int, default=None, help="number of threads (default: all)")
    return parser.parse_args(argv)


def main(argv=None):
    print("quicklens v1")
    args = parse_args(argv)

    n_threads = args.n_threads if args.n_threads is not None else DEFAULT_NUM_WORKERS
    torch.set_num_threads(n_threads)
    print(f"Started with {n_threads} threads")

    image_rgb = read_source_image(args.sourcefile)
    kappa_input = read_convergence_map(args.lensfile)

    # The screen is as large as both images allow
    max_w = min(kappa_input.shape[1], image_rgb.shape[1])
    max_h = min(kappa_input.shape[0], image_rgb.shape[0])
    print("Creating lens, source and screen...")
    lens = Lens(kappa_input, max_w // 2, max_h // 2, pool=RowPartitionedPool(n_threads))
    source = Source(image_rgb, max_w // 2, max_h // 2)
    context = RenderContext(lens, source, max_w, max_h, config_dict={"num_workers": n_threads})

    Screen(context).run()
    print("Closed.")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
