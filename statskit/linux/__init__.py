"""Readers and parsers for Linux /proc files, cgroups and memory limits."""