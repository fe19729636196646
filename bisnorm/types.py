"""Primitive types and useful aliases within bisnorm."""

ChromId = int  # Dense chromosome index assigned by `ChromTable`
ChrName = str  # Chromosome name as it appears in input files, e.g. `chr1`
ReadName = str
