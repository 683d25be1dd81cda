# simos

`simos` simulates a small operating system. It has these parts:

- CPU threads. Each one executes one instruction per tick of a shared clock (`simos.timer.Timer`).
- A multi-level queue scheduler (`simos.sched.Scheduler`). It has 140 priority levels. In each round, level `p` may hand out `140 - p` processes.
- A loader for process description files (`simos.loader`).
- Paged virtual memory (`simos.mm`, `simos.libmem`):
  - Memory lives on a RAM device and swap devices (`simos.memphy.MemPhy`).
  - Pages are 256 bytes.
  - Pages are evicted in FIFO order.
- A system-call table (`simos.syscall`):
  - `0` lists the table.
  - `17` is the memory call (`simos.sysmem.memmap`).
  - `101` is `killall`.

The package has no dependencies outside the standard library.

## Installation

```
pip install .
```

## Running a simulation

```
simos <config>
```

The configuration is read from `input/<config>`, relative to the current directory. It is a sequence of whitespace-separated numbers and names, in this order:

```
<time slot> <number of CPUs> <number of processes>
<RAM size> <SWAP0 size> <SWAP1 size> <SWAP2 size> <SWAP3 size>
<start time> <process file> <priority>      (one per process)
```

Priorities must lie between 0 and 139. All process files are read from `input/proc/` before the clock starts.

A process file starts with a priority and an instruction count. The instructions follow, one per line:

```
calc
alloc <size> <region>
free <region>
read <region> <offset> <destination>
write <value> <region> <offset>
syscall <number> [<arg1> <arg2> <arg3>]
```

The `<destination>` of `read` is parsed but not used. An unknown opcode is an error, and so is a missing file. In either case `simos` prints a message and exits with status 1.

While the simulation runs, it prints:

- each time slot;
- the loading, dispatch, preemption and completion of processes;
- a line whenever a CPU stops;
- on every `read` and `write`, the page table and the non-zero bytes of RAM.

If an instruction fails, the CPU prints a fault line and carries on with the next one. Examples of failure are running out of frames and using an invalid region id.

## Using it as a library

| Module | Main names |
| --- | --- |
| `simos.simulator` | `read_config`, `run_simulation`, `Config`, `ProcessSpec`, `main` |
| `simos.loader` | `load`, `parse_program`, `parse_opcode`, `LoaderError` |
| `simos.cpu` | `run` |
| `simos.sched` | `Scheduler` |
| `simos.queue` | `ProcessQueue` (a FIFO that holds at most 10 processes) |
| `simos.timer` | `Timer`, `TimerEvent` |
| `simos.memphy` | `MemPhy` |
| `simos.mm` | `MemoryMap`, `VmArea`, `Region`, PTE helpers, `inc_vma_limit` |
| `simos.libmem` | `liballoc`, `libfree`, `libread`, `libwrite` |
| `simos.syscall` | `syscall`, `libsyscall`, `SYSCALL_TABLE` |
| `simos.bits` | bit masks and paging address helpers |

A whole simulation:

```python
from simos.simulator import read_config, run_simulation

config = read_config("input/os_1_mlq_paging")
processes = run_simulation(config, "input")
```

A single process, run by hand:

```python
from simos.cpu import run
from simos.loader import parse_program
from simos.memphy import MemPhy
from simos.mm import MemoryMap

proc = parse_program("1 3\nalloc 300 0\nwrite 65 0 10\nread 0 10 0\n", "demo")
proc.mm = MemoryMap()
proc.mram = MemPhy(1024)
proc.active_mswp = MemPhy(4096)
while run(proc):
    pass
```

`run` returns `False` once the program counter has passed the last instruction.

## Limitations

- Memory is always paged. There is no flat, fixed-size memory mode.
- The configuration must always include the memory-size line.
- Only the first swap device is ever used for swapping.
- `killall` does not stop a process that is already running on a CPU. It removes matching processes from the running list and the ready queues, and frees one region of each.

## Running the tests

```
pip install .[test]
pytest
```