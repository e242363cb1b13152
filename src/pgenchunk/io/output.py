"""Writers for decoded genotype chunks."""

from pathlib import Path

from pgenchunk.io.genotypes import GenotypeChunk

MISSING_TOKEN = "NA"


def write_genotype_chunk(chunk: GenotypeChunk, path: Path) -> None:
    """Write a decoded chunk as a tab-separated table.

    Format:
    - Header row: "sample_id" followed by the variant IDs
    - One row per sample: sample ID followed by its genotype calls
    - Missing calls (-1) written as "NA"

    Args:
        chunk: Decoded window with identifiers.
        path: Output file path (parent directories created if needed).

    Example output:
        sample_id	rs1	rs2
        s0	0	2
        s1	NA	1
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    with open(path, "w") as f:
        f.write("\t".join(["sample_id", *chunk.variant_ids]) + "\n")
        for sample_id, row in zip(chunk.sample_ids, chunk.genotypes):
            values = [MISSING_TOKEN if g < 0 else str(g) for g in row.tolist()]
            f.write("\t".join([sample_id, *values]) + "\n")
