import logging

from distance_trees.delta import compute_hyperbolicity
from distance_trees.distance_matrix import DistanceMatrix, InvalidDistanceMatrix, ValidationKind
from distance_trees.tree_fitting_methods.additive_phylogeny import additive_tree
from distance_trees.tree_fitting_methods.neighbor_joining import neighbor_join
from distance_trees.tree_fitting_methods.ultrametric import ultrametric
from distance_trees.utils import TreeConfig, setup_logger

logger = logging.getLogger(__name__)


def fit_tree(distances, config=None):
    """
    Builds a tree from a distance matrix with the method named in `config`.

    Parameters:
        distances (array_like or DistanceMatrix): (n x n) distance matrix.
        config (TreeConfig): Method and checks to run, defaults to TreeConfig().

    Returns:
        UltrametricTree for the 'ultrametric' method, LabeledTree otherwise.

    Raises:
        InvalidDistanceMatrix: If a requested check fails.
    """
    if config is None:
        config = TreeConfig()
    if config.log_level is not None:
        setup_logger("distance_trees", level=config.log_level)

    matrix = DistanceMatrix(distances)
    logger.info('Fitting %s tree on %d taxa', config.method, len(matrix))

    if config.validate:
        matrix.validate()
        logger.debug('Distance matrix is valid')

    if config.method == "ultrametric":
        tree = ultrametric(matrix, config.linkage)
    elif config.method == "neighbor_joining":
        tree = neighbor_join(matrix)
    else:
        if config.check_additive:
            violation = matrix.four_point_violation(config.atol)
            if violation is not None:
                delta = compute_hyperbolicity(matrix.to_numpy())
                logger.warning('Matrix is not additive, four-point delta = %g', delta)
                raise InvalidDistanceMatrix(
                    ValidationKind.NOT_ADDITIVE,
                    violation,
                    "four-point condition not satisfied for d[%d], d[%d], d[%d], d[%d]"
                    % violation,
                )
        tree = additive_tree(matrix)

    logger.info('Tree built with %d nodes', tree.n_nodes)
    return tree
