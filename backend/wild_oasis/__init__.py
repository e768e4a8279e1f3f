"""Staff booking desk for the Wild Oasis cabins."""
