"""Process statistics snapshots and periodic collectors."""