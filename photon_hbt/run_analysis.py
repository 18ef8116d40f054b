import os
import json
import logging
import argparse
import warnings

import uproot
import coffea.util
from coffea import processor

from photon_hbt import hbt_config
from photon_hbt.hbt_processor import PhotonHBTProcessor
from photon_hbt.utils.event_io import iterate_events
from photon_hbt.utils.histograms import write_output

warnings.filterwarnings("ignore", message="Missing cross-reference index")


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Photon HBT same-event and mixed-event pairing")
    parser.add_argument("--json", type=str, required=True, help="Path to JSON file")
    parser.add_argument("--dataset", type=str, required=True, help="Dataset key inside JSON")
    parser.add_argument("--job-index", type=int, required=True, help="Index of file to process")
    parser.add_argument("--output", type=str, required=True, help="Histogram output ROOT file")
    parser.add_argument("--coffea-output", type=str, default=None, help="Optional: full output (5D pair histograms) as .coffea file")
    parser.add_argument("--pairs", type=str, default=",".join(hbt_config.pair_types), help="Comma separated pair types, e.g. PCMPCM,PCMPHOS")
    parser.add_argument("--pcm-cuts", type=str, default=hbt_config.pcm_cuts, help="Comma separated list of V0 photon cuts")
    parser.add_argument("--phos-cuts", type=str, default=hbt_config.phos_cuts, help="Comma separated list of PHOS photon cuts")
    parser.add_argument("--emc-cuts", type=str, default=hbt_config.emc_cuts, help="Comma separated list of EMCal photon cuts")
    parser.add_argument("--ndepth", type=int, default=hbt_config.ndepth, help="Depth for event mixing")
    parser.add_argument("--step-size", type=int, default=100000, help="Events per chunk (one mixing pool per chunk)")
    parser.add_argument("--treepath", type=str, default="Events")
    parser.add_argument("--verbose", action="store_true")
    return parser.parse_args(argv)


def resolve_input(json_path, dataset_key, job_index):
    with open(json_path) as f:
        all_datasets = json.load(f)

    if dataset_key not in all_datasets:
        raise ValueError(f"[ERROR] Dataset '{dataset_key}' not found in {json_path}")

    dataset = all_datasets[dataset_key]
    files = dataset["files"]
    if job_index >= len(files) or job_index < 0:
        raise IndexError(f"[ERROR] job-index {job_index} is out of range (0 - {len(files)-1})")
    return dataset.get("metadata", {}), files[job_index], len(files)


def run(processor_instance, file_to_process, treepath="Events", step_size=100000):
    '''Process a file chunk by chunk and merge the chunk outputs.'''
    outputs = []
    for ichunk, events in enumerate(iterate_events(file_to_process, treepath=treepath, step_size=step_size)):
        print(f"[INFO] Chunk {ichunk}: {len(events)} events")
        outputs.append(processor_instance.process(events))
    if not outputs:
        return processor_instance.postprocess(processor_instance.registry.make_output())
    return processor_instance.postprocess(processor.accumulate(outputs))


def main(argv=None):
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="[%(levelname)s] %(name)s: %(message)s",
    )

    meta, file_to_process, nfiles = resolve_input(args.json, args.dataset, args.job_index)
    sample = meta.get("sample", args.dataset)
    print(f"[INFO] Processing file {args.job_index+1}/{nfiles}: {file_to_process}")
    print(f"[INFO] Sample: {sample}")

    processor_instance = PhotonHBTProcessor(
        pair_types=[p for p in args.pairs.split(",") if p.strip()],
        pcm_cuts=args.pcm_cuts,
        phos_cuts=args.phos_cuts,
        emc_cuts=args.emc_cuts,
        ndepth=args.ndepth,
    )

    output = run(processor_instance, file_to_process, treepath=args.treepath, step_size=args.step_size)

    # --- Save output root file--- #
    with uproot.recreate(args.output) as rootfile:
        nwritten = write_output(rootfile, output)
    print(f"[INFO] Wrote {nwritten} histograms to {args.output}")

    if args.coffea_output:
        coffea.util.save(output, args.coffea_output)
        print(f"[INFO] Saved full output in: {os.path.abspath(args.coffea_output)}")

    return output


if __name__ == "__main__":
    main()
