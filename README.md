# distwt

This package holds the building blocks for building wavelet trees and wavelet
matrices across a group of workers. The workers are simulated inside a single
process. Each collective operation takes one value or vector per worker and
returns what every worker would receive.

## Modules

- `distwt.uint40`: `UInt40` is an unsigned 40-bit integer made of a 32-bit
  low part and an 8-bit high part. It converts to and from five little-endian
  bytes (`from_bytes`, `to_bytes`). Addition and subtraction wrap modulo
  2**40. `Index` is the name it goes by when used for symbol counts.
- `distwt.packing`: functions for bit vectors and 64-bit words.
  - `pack_bits` and `unpack_bits` convert between bits and 64-bit words. The
    first bit of each word is the least significant.
  - `required_bufsize` gives the number of words needed for a count of items.
  - `encode_level` writes a level bit vector as little-endian 64-bit words,
    with the first bit of each word the most significant.
  - `save_levels` writes each level of a worker to
    `<output><rank:04d>.<extension>`; `level_filename` builds that name.
- `distwt.comm`: `WorkerContext` describes one worker.
  - It holds the worker's rank, how workers map to nodes (`num_nodes`,
    `node_rank`, `same_node_as`) and whether it is the master.
  - It counts traffic: `count_tx` and `count_rx` record bytes sent and
    received, and `simulate_allreduce_traffic` and `simulate_scan_traffic`
    estimate the traffic of collective operations.
  - It counts memory with `track_alloc` and `track_free`.
  - The module also provides the collectives `all_reduce` (with
    `elementwise_sum` or `elementwise_max`), `scan` and `ex_scan`, and the
    totals `gather_traffic` and `gather_max_alloc`. `Traffic` holds the byte
    counters.
- `distwt.dsplit`: `dsplit` splits items held by several workers according to
  a predicate. Items on which the predicate is false go, in their global
  order, to the first workers, and the rest go to the remaining workers. The
  load is balanced by the ratio of the two classes. `compute_split_layout`
  returns the `SplitLayout` that the split uses.
- `distwt.histogram`: `Histogram` holds symbol counts sorted by symbol.
  - `Histogram.from_partitions` builds one from per-worker iterables. The
    counts are merged along a tree.
  - `Histogram.from_readers` builds one from partition readers.
  - `merge_counts` and `extract_map` are the helpers the merge uses.
- `distwt.partition`: `FilePartitionReader` divides a file of little-endian
  symbols into equal contiguous parts, one per worker.
  - Symbols can be 1, 2, 4, 5 or 8 bytes wide.
  - `iter_local` yields the worker's symbols.
  - `extract_local` copies the worker's part to `<name>.part.<rank>`.
  - `buffer` and `free` keep the part in memory or drop it.

## Installation

```
pip install .
```

To run the tests, install the test extra with `pip install .[test]` and then
run `pytest`.

## Example

```python
from distwt.histogram import Histogram
from distwt.comm import ex_scan

hist = Histogram.from_partitions([b"abra", b"cada", b"bra"])
print(list(hist))              # [(97, 5), (98, 2), (99, 1), (100, 1), (114, 2)]

print(ex_scan([[1, 2], [3, 4], [5, 6]]))   # [[0, 0], [1, 2], [4, 6]]
```

## Command-line tools

`distwt-histogram` prints how often each byte value occurs in a file:

```
distwt-histogram input.txt
distwt-histogram -r 1Mi input.txt
```

`distwt-process` copies a file and keeps only the given characters. Without
`-f` it copies the whole file. It reports how many bytes it read and wrote:

```
distwt-process input.txt output.txt -f ACGT
```

Buffer sizes (`-r`/`--rbuf` and `-b`/`--buffer`) accept suffixes such as `k`,
`M` and `G`, which are powers of 1000, and `Ki`, `Mi` and `Gi`, which are
powers of 1024.

## What the package does not do

- It does not build a wavelet tree or a wavelet matrix itself. It provides the
  pieces such a construction needs: histograms, balanced splits, prefix sums,
  bit packing and writing levels to files.
- It does not communicate between processes or machines. Every worker lives
  in the same process, and its traffic is counted or estimated, not sent.