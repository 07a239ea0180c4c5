import torch


def four_point_gaps(M, i):
    """
    Four-point gaps of all quadruples (i, j, k, l) with a fixed first index.

    Parameters:
        M (torch.Tensor): A (N x N) distance matrix (assumed to be symmetric).
        i (int): First index of the quadruples.

    Returns:
        torch.Tensor: (N x N x N) tensor indexed by (j, k, l) holding half the
        difference between the largest and second largest of the three sums.
    """
    Mi = M[i]
    # S1 = d_ij + d_kl, S2 = d_ik + d_jl, S3 = d_il + d_jk
    S1 = Mi[:, None, None] + M.unsqueeze(0)
    S2 = Mi[None, :, None] + M.unsqueeze(1)
    S3 = Mi[None, None, :] + M.unsqueeze(2)

    Stot = torch.stack([S1, S2, S3], dim=-1)
    Stot_sorted = Stot.sort(dim=-1, descending=True)[0]
    return (Stot_sorted[..., 0] - Stot_sorted[..., 1]) / 2


def compute_hyperbolicity(M):
    """
    Computes the Gromov delta-hyperbolicity of a metric space using the 4-point condition.

    A distance matrix is additive (a tree metric) exactly when its delta is 0,
    so the value measures how far a matrix is from admitting an exact tree.
    Quadruples are processed one first index at a time to keep memory at
    O(N^3).

    Parameters:
        M (array_like or torch.Tensor): A (N x N) distance matrix.

    Returns:
        float: The delta-hyperbolicity, 0 for matrices with fewer than 4 points
        or for additive matrices.
    """
    M = torch.as_tensor(M, dtype=torch.float64)
    N = M.shape[0]
    delta = torch.zeros((), dtype=torch.float64)
    for i in range(N):
        delta = torch.maximum(delta, four_point_gaps(M, i).max())
    return float(delta)
